"""IDM user service: Okta-backed user DAO with legacy fallback store synchronization."""
