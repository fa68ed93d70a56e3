"""Cancellations bounded context: order cancellation requests and refund quoting.

Hosts the refund engine (price resolution, refund percentage, full and partial
refund amounts) and the cancellation request lifecycle that freezes a quoted
refund once an admin has decided on it.
"""

from protean.domain import Domain

from cancellations.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
cancellations = Domain(name="cancellations")
