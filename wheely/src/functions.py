from typing import List, Type, Dict
from pydantic import BaseModel

from wheely.src import schemas
from wheely.src.exceptions import APIException


def makeExceptionResponses(exceptions: List[Type[APIException]]) -> Dict[int, dict]:
    """
    Generate OpenAPI response documentation from a list of exception classes.

    Exceptions sharing a status code are fused into one response entry with
    one example per exception class. Classes whose constructor requires
    arguments are documented with their class level detail.

    Args:
        exceptions (List[Type[APIException]]): Exception classes an endpoint may raise.

    Returns:
        Dict[int, dict]: OpenAPI response specs grouped by status code.
    """
    responses = {}

    for exception in exceptions:
        status_code = exception.status_code
        example_key = exception.__name__
        example_value = {
            "summary": str(exception.headers),
            "value": {"detail": exception.detail},
        }

        if status_code not in responses:
            responses[status_code] = {
                "model": schemas.ErrorResponse,
                "content": {
                    "application/json": {"examples": {example_key: example_value}}
                },
            }
        else:
            responses[status_code]["content"]["application/json"]["examples"][
                example_key
            ] = example_value

    return responses


def enumStr(enumClass) -> str:
    """
    Convert an Enum class into a comma-separated string of its members.

    Example:
        >>> enumStr(ReportType)
        'DELAY: 1, OVERCROWDING: 2, ROUTE_CHANGE: 3, SAFETY: 4, OTHER: 5'
    """
    return ", ".join(f"{x.name}: {x.value}" for x in enumClass)


def updateIfChanged(targetObj, sourceObj, fields: List[str]) -> bool:
    """
    Update attributes on a target object from a source object
    only if the values differ and the new value is not None.

    Args:
        targetObj (object): The object whose attributes may be updated
            (e.g., a SQLAlchemy model instance).
        sourceObj (object): The object providing new values
            (e.g., a validated `*Data` model).
        fields (List[str]): Attribute names to check, commonly passed as
            `[Model.field.key, ...]`.

    Returns:
        bool: True if at least one attribute was changed.

    Example:
        >>> updateIfChanged(
        ...     route,
        ...     data,
        ...     [Route.name.key, Route.origin.key, Route.destination.key],
        ... )
    """
    changed = False
    for field in fields:
        new_value = getattr(sourceObj, field, None)
        if new_value is not None:
            old_value = getattr(targetObj, field)
            if old_value != new_value:
                setattr(targetObj, field, new_value)
                changed = True
    return changed


def promoteToParent(
    childObj: BaseModel, targetCls: Type[BaseModel], **overrides
) -> BaseModel:
    """
    Promote one Pydantic model into another, applying overrides
    and defaulting missing fields to None.

    Used to turn endpoint form models into the `*Data` models consumed by
    the services.

    Example:
        >>> promoteToParent(CreateForm(title="Late"), ReportData, route_id=3)
        ReportData(route_id=3, type=None, title='Late', body=None)
    """
    baseData = childObj.model_dump()
    targetFields = targetCls.model_fields.keys()
    finalData = {
        field: overrides.get(field, baseData.get(field, None)) for field in targetFields
    }
    return targetCls(**finalData)


def mergeWithRecord(record, data: BaseModel) -> BaseModel:
    """
    Fill the unset (None) fields of `data` from the same-named attributes of
    `record`, giving the complete candidate values of a partial update.

    Example:
        >>> mergeWithRecord(route, RouteData(origin="Centro"))
        RouteData(name='Ruta 1', origin='Centro', destination='Terminal')
    """
    dataCls = type(data)
    values = {field: getattr(record, field, None) for field in dataCls.model_fields}
    values.update(data.model_dump(exclude_none=True))
    return dataCls(**values)
