#!/usr/bin/env python3
"""
Dashboard API Schemas - Pydantic Models for AJAX Request/Response Validation
"""

from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, Field


class AjaxEnvelope(BaseModel):
    success: bool
    data: Optional[Any] = None


class OrderStatusForm(BaseModel):
    order_id: int = Field(..., gt=0)
    status: str = Field(..., min_length=1)


class AgentStatusForm(BaseModel):
    agent_id: int = Field(..., gt=0)
    status: str = Field(..., min_length=1)


class AssignAgentForm(BaseModel):
    order_id: int = Field(..., gt=0)
    agent_id: int = Field(..., gt=0)


def success_envelope(data: Any = None) -> Dict[str, Any]:
    return AjaxEnvelope(success=True, data=data).model_dump()


def error_envelope(message: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    data = message if isinstance(message, dict) else {"message": message}
    return AjaxEnvelope(success=False, data=data).model_dump()
