"""Access token verification and role checks."""
