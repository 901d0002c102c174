"""Account domain exceptions."""

from __future__ import annotations

from typing import Dict, List


class AccountErasureIncomplete(Exception):
    """At least one collection could not be erased.

    ``deleted`` holds the counts of the collections that were erased;
    ``failed`` names the ones that were not.
    """

    def __init__(self, deleted: Dict[str, int], failed: List[str]) -> None:
        super().__init__(
            "Account data partially deleted; failed to erase: " + ", ".join(failed)
        )
        self.deleted = deleted
        self.failed = failed
