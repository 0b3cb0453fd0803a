"""
Shared module for common utilities used by the REST API.

STRUCTURE:
- shared.security: Authentication, authorization
  - auth.py: JWT signing/verification, Principal, current_principal, roles_required
  - password.py: Bcrypt hashing
  - rate_limit.py: Login rate limiting (slowapi)

- shared.infrastructure: Database and messaging
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: Request ID middleware and log filter
  - events/: Redis pool, channel names, event schema, publisher

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, statuses, transitions, messages

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - dates.py: UTC and business-day helpers
  - schemas.py: Pydantic request/response schemas

IMPORT EXAMPLES:
    from shared.security.auth import Principal, roles_required
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, ForbiddenError
"""
