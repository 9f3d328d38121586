"""
Pydantic models for the answering service's wire format and the API surface.
Why: contract-first design; a 2xx body that does not fit these shapes is a
failure, not an answer.

Field names are snake_case in Python; the wire uses the camelCase aliases.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ExperienceLevel = Literal["pre-k", "k5", "middle", "high"]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Connection(_WireModel):
    source: str = Field(..., alias="from")
    target: str = Field(..., alias="to")
    weight: float


class CircuitContext(_WireModel):
    neurons: List[str] = []
    connections: List[Connection] = []


class QueryContext(_WireModel):
    current_circuit: Optional[CircuitContext] = Field(default=None, alias="currentCircuit")
    user_level: Optional[ExperienceLevel] = Field(default=None, alias="userLevel")
    experiment_history: Optional[List[str]] = Field(
        default=None, alias="experimentHistory"
    )


class QAQuery(_WireModel):
    question: str = Field(..., min_length=1)
    context: Optional[QueryContext] = None


class ValidationResult(_WireModel):
    is_valid: bool = Field(..., alias="isValid")
    confidence: float = Field(..., ge=0.0, le=1.0)
    sources: List[str] = []
    corrections: Optional[List[str]] = None


class QAResponse(_WireModel):
    answer: str = Field(..., min_length=1)
    validation: ValidationResult
    hallucination_flag: bool = Field(default=False, alias="hallucination")
    reference_data: Optional[Any] = Field(default=None, alias="owmetaReference")
    # Set only on locally produced fallback answers; never serialized.
    degraded: bool = Field(default=False, exclude=True)

    def to_wire(self) -> Dict[str, Any]:
        # only the keys that were actually set, so remote payloads echo back verbatim
        return self.model_dump(by_alias=True, exclude_unset=True)


class QueryOutcome(str, Enum):
    VALIDATED = "validated"
    ANSWERED = "answered"
    FLAGGED = "flagged"
    FALLBACK = "fallback"


class MutationType(str, Enum):
    KNOCKOUT = "knockout"
    OVEREXPRESS = "overexpress"
    MODIFY = "modify"


class MutationRequest(_WireModel):
    target: str = Field(..., min_length=1)
    mutation_type: MutationType = Field(..., alias="mutationType")
    context: Optional[CircuitContext] = None


class ClaimRequest(_WireModel):
    claim: str = Field(..., min_length=1)


class ClientState(_WireModel):
    is_loading: bool = Field(..., alias="isLoading")
    error: Optional[str] = None
    last_response: Optional[QAResponse] = Field(default=None, alias="lastResponse")
