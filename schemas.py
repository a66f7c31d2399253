"""
Database Schemas for NagarSeva

Each Pydantic model represents a stored record or a request/response body.
Stored collections: Issue -> "issue", User -> "user".
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional, Literal, List, Union

IssueStatus = Literal['new', 'in_progress', 'resolved', 'rejected']

# Whole numbers stay ints on the wire whichever store holds the record.
Amount = Union[int, float]


class User(BaseModel):
    id: str = Field(..., description="Identity key: phone if given, else lowercased name")
    name: str = Field('Anonymous Citizen', description="Display name")
    phone: str = Field('', description="Phone number, may be empty")
    points: Amount = Field(0, ge=0, description="Cumulative reward points")
    totalRewards: Amount = Field(0, ge=0, description="Cumulative rewards in currency")


class Location(BaseModel):
    latitude: Optional[float] = Field(None)
    longitude: Optional[float] = Field(None)
    address: str = Field('', description="Nearest address or landmark")
    city: str = Field('', description="City name")


class Reward(BaseModel):
    amount: Amount = Field(0, ge=0, description="Amount credited to the reporter")
    currency: str = Field('INR')
    awarded: bool = Field(False, description="Set once, when the reward is granted")


class TimelineEntry(BaseModel):
    at: str = Field(..., description="ISO-8601 timestamp")
    status: str = Field(..., description="Status literal or the 'rewarded' event")
    note: str = Field('')


class Issue(BaseModel):
    id: str
    complaintId: str = Field(..., description="Human-facing code FIX-<year>-<nnnn>")
    title: str
    description: str
    category: str
    location: Location = Field(default_factory=Location)
    imageData: str = Field(..., description="Encoded image payload")
    status: IssueStatus = Field('new')
    department: str
    createdAt: str
    updatedAt: str
    upvotes: int = Field(0, ge=0)
    reporterId: str
    reward: Reward = Field(default_factory=Reward)
    timeline: List[TimelineEntry] = Field(default_factory=list)


# ---------- Request bodies ----------

class IssueCreate(BaseModel):
    """Flat creation payload as posted by the citizen form."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    imageData: Optional[str] = None
    reporterName: Optional[str] = None
    reporterPhone: Optional[str] = None

    @field_validator('latitude', 'longitude', mode='before')
    @classmethod
    def blank_coordinate(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StatusUpdate(BaseModel):
    # Checked by the lifecycle so unknown values map to InvalidStatusError.
    status: Optional[str] = None
    note: Optional[str] = None


class RewardRequest(BaseModel):
    # Only a JSON number overrides the estimate; see rewards.supplied_amount.
    amount: Any = None


# ---------- Aggregation responses ----------

class UserTotals(BaseModel):
    totalRewards: Amount
    points: Amount
    issuesReported: int
    rewardsCount: int


class RewardHistoryItem(BaseModel):
    complaintId: str
    category: str
    amount: Amount
    createdAt: str
    status: IssueStatus


class UserSummary(BaseModel):
    user: User
    totals: UserTotals
    rewardsHistory: List[RewardHistoryItem] = Field(default_factory=list)
