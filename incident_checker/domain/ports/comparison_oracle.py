"""Protocol for the article comparison oracle."""

from typing import Protocol


class ComparisonOracle(Protocol):
    """Judges how much a new article overlaps with an existing one."""

    async def compare(self, new_content: str, existing_content: str) -> str:
        """Return the raw oracle reply.

        The reply is expected to be a JSON object
        ``{"hasNewInformation": bool, "differences": [str], "similarityScore": number}``
        but callers must validate it.
        """
        ...
