"""Base classes for converter options.

This module defines the foundation shared by every options dataclass used
in the docxmd conversion pipeline.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    Options objects are immutable; ``create_updated`` returns a modified copy.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class BaseConverterOptions(CloneFrozenMixin):
    """Base class for the options of both conversion directions.

    Parameters
    ----------
    fail_on_resource_errors : bool, default=False
        Whether a resource that cannot be resolved (an image missing from the
        side-table, an undecodable payload) raises instead of degrading.
        The default keeps the converter's degrade-visibly behavior.

    """

    fail_on_resource_errors: bool = field(
        default=False,
        metadata={
            "help": "Raise on unresolved resources (images) instead of substituting a placeholder",
            "importance": "advanced",
        },
    )
