"""Challenge type definitions."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .oracles import Oracle, get_oracle, run_oracle


class Difficulty(str, Enum):
    """Challenge difficulty levels."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Challenge(BaseModel):
    """A catalog entry. Authored once, never mutated at runtime."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    module: str = Field(default="Module 1", description="Grouping shown in the roadmap")
    page: int = Field(default=0)
    language: str = Field(default="csharp")
    difficulty: Difficulty = Field(default=Difficulty.EASY)
    starter_code: str = Field(default="")
    hint: str = Field(default="")
    solution: str = Field(description="Reference solution, used only for length grading")
    test_inputs: tuple[str, ...] = Field(default=(), description="Ordered stdin blocks")
    xp_reward: Optional[int] = Field(default=None)
    coin_reward: Optional[int] = Field(default=None)

    @property
    def starter_source(self) -> str:
        """Starter code with escaped newlines turned into real ones."""
        return self.starter_code.replace("\\r\\n", "\n").replace("\\n", "\n")

    @property
    def oracle(self) -> Oracle:
        return get_oracle(self.id)

    async def expected_output(self, stdin: str) -> str:
        """Run the reference oracle against one test input block."""
        return await run_oracle(self.oracle, stdin)

    @classmethod
    def from_dict(cls, data: dict) -> "Challenge":
        """Create a Challenge from authored JSON (camelCase keys accepted)."""
        aliases = {
            "starterCode": "starter_code",
            "testInputs": "test_inputs",
            "xpReward": "xp_reward",
            "xp": "xp_reward",
            "coinsReward": "coin_reward",
            "coins": "coin_reward",
        }
        values = {aliases.get(key, key): value for key, value in data.items()}
        if "test_inputs" in values:
            values["test_inputs"] = tuple(values["test_inputs"])
        return cls(**values)
