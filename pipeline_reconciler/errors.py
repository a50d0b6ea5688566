# /*
# Copyright 2026 The Pipeline Reconciler Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Error taxonomy for a reconciliation run.

Every failure that should end the run with a non-zero exit code derives from
:class:`ReconcileError`. The CLI catches that base class only.
"""

from __future__ import annotations


class ReconcileError(RuntimeError):
    """Base class for fatal reconciliation failures."""


class SpecValidationError(ReconcileError):
    """The desired cluster/deployment spec failed required-field checks."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Validation error(s): " + "; ".join(self.problems))


class TransportError(ReconcileError):
    """An HTTP request could not be built or executed."""


class UnexpectedStatusError(ReconcileError):
    """The API answered with a status code outside the recognized set."""

    def __init__(self, method: str, url: str, status: int, detail: str = "") -> None:
        self.method = method
        self.url = url
        self.status = status
        message = f"unexpected status {status} for {method} {url}"
        if detail:
            message = f"{detail}: {message}"
        super().__init__(message)


class InvalidResponseError(ReconcileError):
    """A successful response carried a body that could not be used."""


class ClusterRejectedError(ReconcileError):
    """The API refused the create-cluster request (e.g. the name is taken)."""


class IdentityResolutionError(ReconcileError):
    """The repository owner does not match any remote organization."""


class ResourceTimeoutError(ReconcileError, TimeoutError):
    """A resource did not become ready within the wait budget."""

    def __init__(self, description: str, timeout: float) -> None:
        self.description = description
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:g}s waiting for {description}")


class WaitCancelledError(ReconcileError):
    """A wait was cancelled before the resource became ready."""
