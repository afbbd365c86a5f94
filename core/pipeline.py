import json
import sys
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from config.models import Config
from core.contracts.formatter import Formatter
from core.contracts.models import CreatePullRequest
from core.fold import fold_pull_request_messages
from core.formatter.report_formatter import ReportFormatter
from utils.errors import MessageDecodeError
from utils.logger import logger


def load_payloads(path: str) -> List[Dict[str, Any]]:
    """
    Reads a JSON array of pull request payloads.

    Args:
        path: A file path, or "-" to read from stdin.

    Raises:
        MessageDecodeError: If the document is not UTF-8, not valid JSON or not an array.
    """
    try:
        if path == "-":
            document = json.load(sys.stdin)
        else:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
    except json.JSONDecodeError as e:
        raise MessageDecodeError(f"Input at {path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise MessageDecodeError(f"Input at {path} is not UTF-8 encoded: {e}") from e

    if not isinstance(document, list):
        raise MessageDecodeError(f"Expected a JSON array of messages at {path}, got {type(document).__name__}.")
    return document


class PullRequestFoldPipeline:
    """
    Decodes candidate pull request messages, folds them and encodes the result.
    """

    def __init__(self, config: Config):
        """
        Initializes the pipeline with the given configuration.

        Args:
            config: The configuration object.
        """
        self.config = config

    def decode(self, payloads: Sequence[Dict[str, Any]]) -> List[CreatePullRequest]:
        messages = []
        for index, payload in enumerate(payloads):
            try:
                messages.append(CreatePullRequest.from_wire(payload))
            except ValidationError as e:
                raise MessageDecodeError(f"Message #{index} is not a valid pull request: {e}") from e
        logger.info(f"Decoded {len(messages)} pull request messages.")
        return messages

    def fold(self, messages: Sequence[CreatePullRequest]) -> List[CreatePullRequest]:
        folded = fold_pull_request_messages(messages)
        merged = len(messages) - len(folded)
        if merged:
            logger.info(f"Merged {merged} duplicate pull request messages; {len(folded)} remain.")
        else:
            logger.info(f"No duplicate pull request messages among {len(messages)}.")
        return folded

    def encode(self, messages: Sequence[CreatePullRequest]) -> List[Dict[str, Any]]:
        return [message.to_wire() for message in messages]

    def report(self, messages: Sequence[CreatePullRequest]) -> List[str]:
        """
        Renders a report for each message.

        Raises:
            FormatterError: If a report cannot be rendered.
        """
        formatter: Formatter = ReportFormatter(
            template_dir=self.config.formatter.template_dir,
            template_name=self.config.formatter.template,
        )
        return [formatter.format(message) for message in messages]

    def run(self, payloads: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Runs decode, fold and encode over raw payloads.

        Returns:
            The folded messages in their wire form.
        """
        logger.info("Starting pull request fold pipeline...")
        messages = self.decode(payloads)
        folded = self.fold(messages)
        logger.success("Pull request fold pipeline completed successfully!")
        return self.encode(folded)
