"""
Pydantic request/response models for the FormFlow API.

Field names follow the persisted JSON contract (camelCase).
"""

from typing import Any, Optional, Union

from pydantic import BaseModel


class OptionSchema(BaseModel):
    label: str
    nextAction: Optional[str] = None
    targetSectionIndex: Optional[int] = None


class LinkedScheduleSchema(BaseModel):
    id: int
    title: str = ""
    startDate: str = ""
    questionId: Optional[int] = None


class QuestionSchema(BaseModel):
    id: Optional[int] = None
    label: str = ""
    description: Optional[str] = None
    inputType: str = "SHORT_TEXT"
    required: bool = False
    orderIndex: int = 0
    memberSpecific: bool = False
    isMemberSpecific: Optional[bool] = None
    optionsJson: Optional[str] = None
    options: Optional[list[Union[OptionSchema, str]]] = None
    syncType: Optional[str] = None
    linkedWorshipCategory: Optional[str] = None
    linkedScheduleId: Optional[int] = None
    linkedScheduleDate: Optional[str] = None
    linkedSchedules: Optional[list[LinkedScheduleSchema]] = None


class SectionSchema(BaseModel):
    id: Optional[int] = None
    title: str = ""
    description: Optional[str] = None
    orderIndex: int = 0
    defaultNextAction: Optional[str] = None
    defaultTargetSectionIndex: Optional[int] = None
    questions: list[QuestionSchema] = []


class TemplateSchema(BaseModel):
    id: Optional[int] = None
    templateId: Optional[int] = None
    title: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    isActive: Optional[bool] = None
    active: Optional[bool] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    sections: list[SectionSchema] = []
    questions: Optional[list[QuestionSchema]] = None


class SplitRequest(BaseModel):
    template: TemplateSchema
    backendTypes: bool = False


class NextStepRequest(BaseModel):
    template: TemplateSchema
    currentIndex: int = 0
    answers: dict[str, Any] = {}


class NextStepResponse(BaseModel):
    action: str
    targetIndex: Optional[int] = None


class DeriveAnswersRequest(BaseModel):
    template: TemplateSchema
    answers: dict[str, Any] = {}
    members: list[str] = []


class WriteAnswerRequest(BaseModel):
    template: TemplateSchema
    answers: dict[str, Any] = {}
    questionId: int
    value: Any = None
    target: Optional[str] = None


class AnswersResponse(BaseModel):
    answers: dict[str, Any]


class SubmissionBuildRequest(BaseModel):
    template: TemplateSchema
    answers: dict[str, Any] = {}
    membersByName: dict[str, int] = {}
    date: Optional[str] = None
    cellId: Optional[int] = None


class AnswerEntry(BaseModel):
    questionId: int
    targetMemberId: Optional[int] = None
    value: str


class SubmissionResponse(BaseModel):
    templateId: int
    date: Optional[str] = None
    cellId: Optional[int] = None
    answers: list[AnswerEntry]


class ErrorResponse(BaseModel):
    """Body of a 400 response."""
    detail: str
