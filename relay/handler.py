from typing import Any, Mapping

from relay.models.errors import SubmissionError
from relay.utils.logger import get_logger
from relay.workflow import get_workflow


logger = get_logger("handler")


def handler(event: Mapping[str, Any], context: Any = None) -> str:
    """
    Function-trigger entry point.

    Returns the success summary or the failure reason. A malformed event
    raises, leaving redelivery to the trigger.
    """
    logger.info("Submission handler invoked")
    result = get_workflow().handle(event)
    if isinstance(result, SubmissionError):
        return result.reason
    return result
