from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class PaymentStatus(str, Enum):
    UNKNOWN = "UNKNOWN"
    IN_FLIGHT = "IN_FLIGHT"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class FailureReason(str, Enum):
    NONE = "FAILURE_REASON_NONE"
    TIMEOUT = "FAILURE_REASON_TIMEOUT"
    NO_ROUTE = "FAILURE_REASON_NO_ROUTE"
    ERROR = "FAILURE_REASON_ERROR"
    INCORRECT_PAYMENT_DETAILS = "FAILURE_REASON_INCORRECT_PAYMENT_DETAILS"
    INSUFFICIENT_BALANCE = "FAILURE_REASON_INSUFFICIENT_BALANCE"


# The REST gateway encodes uint64 as JSON strings and may omit zero values,
# hence the defaults and int coercion below.


class GetInfoResponse(BaseModel):
    alias: str = ""
    num_peers: int = Field(0, ge=0)
    block_height: int = Field(0, ge=0)


class Payment(BaseModel):
    payment_hash: str = ""
    status: PaymentStatus = PaymentStatus.UNKNOWN
    failure_reason: FailureReason = FailureReason.NONE
    fee_msat: int = Field(0, ge=0)


class ListPaymentsResponse(BaseModel):
    payments: List[Payment] = []
    first_index_offset: int = Field(0, ge=0)
    last_index_offset: int = Field(0, ge=0)


class Channel(BaseModel):
    chan_id: int = Field(..., ge=0)
    active: bool = False
    channel_point: str = ""
    local_balance: int = 0
    remote_balance: int = 0
    unsettled_balance: int = 0


class ListChannelsResponse(BaseModel):
    channels: List[Channel] = []
