from __future__ import annotations

from typing import Callable, Optional

AskFn = Callable[[str, bool], bool]


class ResolutionPolicy:
    """
    Answers the yes/no questions raised for each discrepancy.

    - should_add: translate/add the value (default yes)
    - should_remove: follow-up after declining, remove instead (default no)
    - should_overwrite_target: make target match the base shape (default yes)
    - should_overwrite_base: make base match the target shape (default no)
    """

    def should_add(self, message: str) -> bool:
        raise NotImplementedError

    def should_remove(self, message: str) -> bool:
        raise NotImplementedError

    def should_overwrite_target(self, message: str) -> bool:
        raise NotImplementedError

    def should_overwrite_base(self, message: str) -> bool:
        raise NotImplementedError


class AutomaticPolicy(ResolutionPolicy):
    def __init__(self, prefer_remove: bool = False) -> None:
        self.prefer_remove = prefer_remove

    def should_add(self, message: str) -> bool:  # noqa: ARG002
        return not self.prefer_remove

    def should_remove(self, message: str) -> bool:  # noqa: ARG002
        return self.prefer_remove

    def should_overwrite_target(self, message: str) -> bool:  # noqa: ARG002
        return True

    def should_overwrite_base(self, message: str) -> bool:  # noqa: ARG002
        return False


class InteractivePolicy(ResolutionPolicy):
    def __init__(self, ask: AskFn) -> None:
        self.ask = ask

    def should_add(self, message: str) -> bool:
        return self.ask(message, True)

    def should_remove(self, message: str) -> bool:
        return self.ask(message, False)

    def should_overwrite_target(self, message: str) -> bool:
        return self.ask(message, True)

    def should_overwrite_base(self, message: str) -> bool:
        return self.ask(message, False)


def build_policy(auto: bool, prefer_remove: bool, ask: Optional[AskFn] = None) -> ResolutionPolicy:
    if auto:
        return AutomaticPolicy(prefer_remove=prefer_remove)
    if ask is None:
        raise ValueError("Interactive mode needs a prompt function")
    return InteractivePolicy(ask)


__all__ = [
    "AskFn",
    "AutomaticPolicy",
    "InteractivePolicy",
    "ResolutionPolicy",
    "build_policy",
]
