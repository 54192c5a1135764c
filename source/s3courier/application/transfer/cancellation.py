"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import threading
from typing import Optional, Protocol


class Cancellable(Protocol):
    def is_set(self) -> bool:
        ...


class CancelSignal:
    """
    Cancellation flag of a single transfer. It also reads as set when its
    parent is set, so shutting the runtime down stops every transfer while
    a failing transfer only stops its own parts.
    """

    def __init__(self, parent: Optional[Cancellable] = None) -> None:
        self.parent = parent
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set() or (
            self.parent is not None and self.parent.is_set()
        )
