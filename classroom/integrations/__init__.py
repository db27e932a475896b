"""External collaborators: email delivery, job dispatch, error tracking."""
