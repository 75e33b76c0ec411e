"""
Preset Models — Named run configurations.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from glossa.core.context import CancellationToken, ExecutionPolicy, RunOptions
from glossa.core.merge import ArrayStrategy, ConflictStrategy, MergeOptions


class MergeSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    array_strategy: ArrayStrategy = ArrayStrategy.REPLACE
    conflict_strategy: ConflictStrategy = ConflictStrategy.LAST_WINS


class PresetSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    derive_dependencies: bool = Field(False, description="Order by requires/provides as well")
    max_concurrency: Optional[int] = Field(None, ge=1, description="Node invocations in flight")
    merge: MergeSettings = Field(default_factory=MergeSettings)


class Preset(BaseModel):
    """A named list of extension ids plus run settings."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    policy: ExecutionPolicy = ExecutionPolicy.STRICT
    extensions: list[str] = Field(..., min_length=1, description="Registered extension ids")
    settings: PresetSettings = Field(default_factory=PresetSettings)

    def to_run_options(
        self,
        cancel_token: Optional[CancellationToken] = None,
        run_id: Optional[str] = None,
        **options: Any,
    ) -> RunOptions:
        """Run options restricting the run to this preset's extensions."""
        return RunOptions(
            policy=self.policy,
            only_ids=frozenset(self.extensions),
            derive_dependencies=self.settings.derive_dependencies,
            max_concurrency=self.settings.max_concurrency,
            merge=MergeOptions(
                array_strategy=self.settings.merge.array_strategy,
                conflict_strategy=self.settings.merge.conflict_strategy,
            ),
            cancel_token=cancel_token,
            run_id=run_id,
            options=options,
        )
