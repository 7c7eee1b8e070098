"""
Address management pages.

This module provides the server-rendered list, create, edit and delete pages.
Handlers call the address service, branch on the Result it returns and pick
a template or a redirect; no business rules live here.
"""

from typing import Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
import structlog

from address_portal.application.models import (
    FIELD_LABELS,
    CreateAddressInput,
    UpdateAddressInput
)
from address_portal.application.templating import flash, render
from address_portal.core.services.address_service import AddressService
from address_portal.infrastructure.address_api.dependency import get_address_service
from address_portal.shared.result import Failure
from address_portal.shared.types import AddressID, NoticeLevel

logger = structlog.get_logger(__name__)
router = APIRouter()

FORM_INVALID_STATUS = 422


def _form_values(form) -> Dict[str, str]:
    """Collect submitted address fields, dropping blanks so they count as missing."""
    values = {}
    for field in FIELD_LABELS:
        value = form.get(field)
        if isinstance(value, str) and value.strip():
            values[field] = value.strip()
    return values


def _field_errors(exc: ValidationError, model: type) -> Dict[str, str]:
    """Turn pydantic errors into one message per form field."""
    alias_to_name = {
        field.alias: name for name, field in model.model_fields.items() if field.alias
    }
    errors = {}
    for error in exc.errors():
        loc = str(error["loc"][0]) if error["loc"] else ""
        name = alias_to_name.get(loc, loc)
        label = FIELD_LABELS.get(name, name)
        if error["type"] == "missing":
            errors[name] = f"{label} is required."
        else:
            errors[name] = f"{label}: {error['msg']}"
    return errors


def _redirect_to_list(request: Request) -> RedirectResponse:
    return RedirectResponse(
        url=str(request.url_for("list_addresses")),
        status_code=status.HTTP_303_SEE_OTHER
    )


@router.get("", response_class=HTMLResponse, name="list_addresses")
async def list_addresses(
    request: Request,
    service: AddressService = Depends(get_address_service)
):
    """Show every address; a failure renders an empty table with the error."""
    result = await service.list_addresses()

    if isinstance(result, Failure):
        logger.warning("Failed to load addresses", error=result.message)
        return render(request, "addresses/index.html", {"addresses": [], "error": result.message})

    return render(request, "addresses/index.html", {"addresses": result.value})


@router.get("/create", response_class=HTMLResponse, name="create_address_form")
async def create_address_form(request: Request):
    return render(request, "addresses/create.html", {"form": {}, "errors": {}})


@router.post("/create", response_class=HTMLResponse, name="create_address")
async def create_address(
    request: Request,
    service: AddressService = Depends(get_address_service)
):
    """
    Create an address from the submitted form.

    Invalid input re-renders the form with field errors (422). A service
    failure re-renders the form with the API message.
    """
    values = _form_values(await request.form())

    try:
        data = CreateAddressInput.model_validate(values)
    except ValidationError as e:
        errors = _field_errors(e, CreateAddressInput)
        logger.info("Create address form invalid", fields=sorted(errors))
        return render(
            request, "addresses/create.html",
            {"form": values, "errors": errors},
            status_code=FORM_INVALID_STATUS
        )

    result = await service.create_address(data)

    if isinstance(result, Failure):
        logger.warning("Failed to create address", error=result.message)
        return render(
            request, "addresses/create.html",
            {"form": values, "errors": {}, "form_error": result.message}
        )

    flash(request, NoticeLevel.SUCCESS, "Address created successfully")
    return _redirect_to_list(request)


@router.get("/{address_id}/edit", response_class=HTMLResponse, name="edit_address_form")
async def edit_address_form(
    request: Request,
    address_id: UUID,
    service: AddressService = Depends(get_address_service)
):
    result = await service.get_address(AddressID(address_id))

    if isinstance(result, Failure):
        logger.warning("Failed to load address", address_id=str(address_id), error=result.message)
        flash(request, NoticeLevel.ERROR, result.message)
        return _redirect_to_list(request)

    form = result.value.model_dump(exclude={"id"}, exclude_none=True)
    return render(
        request, "addresses/edit.html",
        {"address_id": address_id, "form": form, "errors": {}}
    )


@router.post("/{address_id}/edit", response_class=HTMLResponse, name="update_address")
async def update_address(
    request: Request,
    address_id: UUID,
    service: AddressService = Depends(get_address_service)
):
    values = _form_values(await request.form())

    try:
        data = UpdateAddressInput.model_validate(values)
    except ValidationError as e:
        errors = _field_errors(e, UpdateAddressInput)
        logger.info("Edit address form invalid", address_id=str(address_id), fields=sorted(errors))
        return render(
            request, "addresses/edit.html",
            {"address_id": address_id, "form": values, "errors": errors},
            status_code=FORM_INVALID_STATUS
        )

    result = await service.update_address(AddressID(address_id), data)

    if isinstance(result, Failure):
        logger.warning("Failed to update address", address_id=str(address_id), error=result.message)
        return render(
            request, "addresses/edit.html",
            {"address_id": address_id, "form": values, "errors": {}, "form_error": result.message}
        )

    flash(request, NoticeLevel.SUCCESS, "Address updated successfully")
    return _redirect_to_list(request)


@router.get("/{address_id}/delete", response_class=HTMLResponse, name="delete_address_form")
async def delete_address_form(
    request: Request,
    address_id: UUID,
    service: AddressService = Depends(get_address_service)
):
    result = await service.get_address(AddressID(address_id))

    if isinstance(result, Failure):
        logger.warning("Failed to load address for deletion", address_id=str(address_id), error=result.message)
        flash(request, NoticeLevel.ERROR, result.message)
        return _redirect_to_list(request)

    return render(request, "addresses/delete.html", {"address": result.value})


@router.post("/{address_id}/delete", name="delete_address")
async def delete_address(
    request: Request,
    address_id: UUID,
    service: AddressService = Depends(get_address_service)
):
    result = await service.delete_address(AddressID(address_id))

    if isinstance(result, Failure):
        logger.warning("Failed to delete address", address_id=str(address_id), error=result.message)
        flash(request, NoticeLevel.ERROR, result.message)
        return _redirect_to_list(request)

    flash(request, NoticeLevel.SUCCESS, "Address deleted successfully")
    return _redirect_to_list(request)
