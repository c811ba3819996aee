"""
API routes for the FormFlow questionnaire engine.

Every endpoint is stateless: the template and answers travel in the request.
Answer keys are question ids, sent as JSON object keys (strings).
"""

from fastapi import APIRouter, Depends, HTTPException

from formflow.answers import build_submission, derive_answers, write_answer
from formflow.codec import dump_template, load_template
from formflow.grouping import split_template
from formflow.logger import FormLogger
from formflow.models import Template
from formflow.navigation import get_next_step
from formflow.service import open_template
from api.dependencies import get_logger
from api.schemas import (
    AnswersResponse,
    DeriveAnswersRequest,
    ErrorResponse,
    NextStepRequest,
    NextStepResponse,
    SplitRequest,
    SubmissionBuildRequest,
    SubmissionResponse,
    TemplateSchema,
    WriteAnswerRequest,
)

router = APIRouter(prefix="/api/v1/forms", tags=["forms"])

BAD_REQUEST = {400: {"model": ErrorResponse}}


def _bad_request(logger: FormLogger, detail: str) -> HTTPException:
    logger.log(f"  ERROR 400: {detail}")
    return HTTPException(status_code=400, detail=detail)


def _question_keys(bucket: dict, logger: FormLogger) -> dict:
    """Convert string question-id keys to ints."""
    converted = {}
    for key, value in bucket.items():
        try:
            converted[int(key)] = value
        except (TypeError, ValueError):
            raise _bad_request(logger, f"Answer key is not a question id: {key!r}")
    return converted


def _answers_in(template: Template, answers: dict, logger: FormLogger) -> dict:
    """Decode request answers into the engine's personal or group shape."""
    if not template.is_group:
        return _question_keys(answers, logger)
    decoded = {}
    for target, bucket in answers.items():
        if not isinstance(bucket, dict):
            raise _bad_request(logger, f"Group answers for {target!r} must be an object")
        decoded[target] = _question_keys(bucket, logger)
    return decoded


def _answers_out(template: Template, answers: dict) -> dict:
    if not template.is_group:
        return {str(k): v for k, v in answers.items()}
    return {target: {str(k): v for k, v in bucket.items()} for target, bucket in answers.items()}


@router.get("/health")
def forms_health():
    return {"status": "ok"}


@router.post("/group", response_model=TemplateSchema, response_model_exclude_none=True)
def group_endpoint(
    template: TemplateSchema,
    logger: FormLogger = Depends(get_logger),
):
    """Return the grouped (editing/viewing) shape of a persisted template."""
    logger.log(f"POST /group template={template.templateId or template.id}")
    grouped = open_template(template.model_dump(exclude_none=True), logger)
    logger.log(f"  OK: {len(grouped.all_questions())} grouped question(s)")
    return dump_template(grouped)


@router.post("/split", response_model=TemplateSchema, response_model_exclude_none=True)
def split_endpoint(
    body: SplitRequest,
    logger: FormLogger = Depends(get_logger),
):
    """Return the flat (persistence) shape of a grouped template."""
    logger.log(f"POST /split template={body.template.templateId or body.template.id}")
    flat = split_template(load_template(body.template.model_dump(exclude_none=True), logger))
    logger.log(f"  OK: {len(flat.all_questions())} flat question(s)")
    return dump_template(flat, backend_types=body.backendTypes)


@router.post("/next-step", response_model=NextStepResponse, responses=BAD_REQUEST)
def next_step_endpoint(
    body: NextStepRequest,
    logger: FormLogger = Depends(get_logger),
):
    """Evaluate the navigation decision for the current section."""
    template = open_template(body.template.model_dump(exclude_none=True), logger)
    answers = _answers_in(template, body.answers, logger)
    try:
        step = get_next_step(
            template.sorted_sections(), body.currentIndex, answers, template.is_group
        )
    except ValueError as e:
        raise _bad_request(logger, str(e))
    logger.log(f"POST /next-step section={body.currentIndex} -> {step.action} {step.target_index}")
    return NextStepResponse(action=step.action, targetIndex=step.target_index)


@router.post("/answers/derive", response_model=AnswersResponse, responses=BAD_REQUEST)
def derive_answers_endpoint(
    body: DeriveAnswersRequest,
    logger: FormLogger = Depends(get_logger),
):
    """Project raw per-schedule booleans into grouped id lists."""
    template = open_template(body.template.model_dump(exclude_none=True), logger)
    answers = _answers_in(template, body.answers, logger)
    derived = derive_answers(template, answers, body.members)
    return AnswersResponse(answers=_answers_out(template, derived))


@router.post("/answers/write", response_model=AnswersResponse, responses=BAD_REQUEST)
def write_answer_endpoint(
    body: WriteAnswerRequest,
    logger: FormLogger = Depends(get_logger),
):
    """Apply one answer edit and return the updated raw answers."""
    template = open_template(body.template.model_dump(exclude_none=True), logger)
    answers = _answers_in(template, body.answers, logger)
    try:
        updated = write_answer(template, answers, body.questionId, body.value, body.target)
    except ValueError as e:
        raise _bad_request(logger, str(e))
    return AnswersResponse(answers=_answers_out(template, updated))


@router.post(
    "/submission",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses=BAD_REQUEST,
)
def submission_endpoint(
    body: SubmissionBuildRequest,
    logger: FormLogger = Depends(get_logger),
):
    """Build the answer submission from raw answers."""
    flat = split_template(load_template(body.template.model_dump(exclude_none=True), logger))
    answers = _answers_in(flat, body.answers, logger)
    submission = build_submission(
        flat,
        answers,
        members_by_name=body.membersByName,
        date=body.date,
        cell_id=body.cellId,
    )
    logger.log(f"POST /submission template={flat.id} answers={len(submission['answers'])}")
    return submission
