"""
Form validation endpoint for API v1.

Runs a submitted payload through the same sanitization and validation
pipeline the dashboard forms use, for clients that post raw form data.
"""

from fastapi import APIRouter

from ..domain.exceptions import FieldValidationException
from ..forms import FormStateController
from ..models import FormValidationRequest, FormValidationResponse

router = APIRouter(prefix="/api/v1/forms", tags=["Forms"])


@router.post(
    "/validate",
    response_model=FormValidationResponse,
    summary="Sanitize and validate a form payload",
)
async def validate_form(payload: FormValidationRequest):
    """
    Sanitize every value by its field rules and validate the result.

    Raises:
        FieldValidationException: If any field fails validation (422)
    """
    controller = FormStateController(
        initial_values={name: "" for name in payload.fields},
        field_configs={
            name: rules.to_field_config() for name, rules in payload.fields.items()
        },
        validate_on_change=False,
    )
    controller.set_multiple_values(payload.values)

    if not controller.validate_all():
        raise FieldValidationException(controller.errors)

    return FormValidationResponse(valid=True, values=controller.values)
