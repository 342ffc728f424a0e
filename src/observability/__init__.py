# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import metrics_blueprint, record_oauth_exchange, record_upstream_call, update_session_gauge  # noqa: F401
