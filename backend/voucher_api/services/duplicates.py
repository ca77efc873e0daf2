from __future__ import annotations

from typing import Iterable, Protocol, Sequence


class CodeExistenceChecker(Protocol):
    def existing_codes_among(self, codes: Sequence[str]) -> list[str]: ...


class DuplicateResolver:
    """Find which candidate codes are already taken by active vouchers.

    Always a single existence query, however many codes are passed in.
    """

    def __init__(self, repository: CodeExistenceChecker) -> None:
        self.repository = repository

    def resolve(self, codes: Iterable[str]) -> set[str]:
        unique_codes = list(dict.fromkeys(codes))
        if not unique_codes:
            return set()
        return set(self.repository.existing_codes_among(unique_codes))
