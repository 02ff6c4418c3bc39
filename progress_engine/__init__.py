"""Progress & achievement engine for learners."""
