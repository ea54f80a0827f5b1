"""
Stored procedure endpoints: discovery, metadata and invocation.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_gateway
from api.models.requests import InvokeProcedureRequest
from api.models.responses import (
    ERROR_RESPONSES,
    ProcedureDefinitionResponse,
    ProcedureInfoResponse,
    ProcedureParametersResponse,
    ProcedureResultResponse,
    ProceduresResponse,
)
from core.gateway import OperationKind, QueryGateway

router = APIRouter(
    prefix="/api/v1/databases/{database}/procedures",
    tags=["procedures"],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=ProceduresResponse)
def list_procedures(database: str, gateway: QueryGateway = Depends(get_gateway)):
    result = gateway.execute(database, OperationKind.LIST_PROCEDURES)
    return ProceduresResponse(database=database, procedures=list(result.rows), count=result.count)


@router.get("/{procedure}", response_model=ProcedureInfoResponse)
def procedure_info(database: str, procedure: str, gateway: QueryGateway = Depends(get_gateway)):
    result = gateway.execute(database, OperationKind.PROCEDURE_INFO, {"procedure": procedure})
    return ProcedureInfoResponse(database=database, procedure=result.rows[0])


@router.get("/{procedure}/definition", response_model=ProcedureDefinitionResponse)
def procedure_definition(database: str, procedure: str, gateway: QueryGateway = Depends(get_gateway)):
    """T-SQL source of the procedure."""
    result = gateway.execute(database, OperationKind.PROCEDURE_DEFINITION, {"procedure": procedure})
    return ProcedureDefinitionResponse(
        database=database,
        procedure=procedure,
        definition=result.rows[0]["definition"],
    )


@router.get("/{procedure}/parameters", response_model=ProcedureParametersResponse)
def procedure_parameters(database: str, procedure: str, gateway: QueryGateway = Depends(get_gateway)):
    result = gateway.execute(database, OperationKind.PROCEDURE_PARAMETERS, {"procedure": procedure})
    return ProcedureParametersResponse(
        database=database,
        procedure=procedure,
        parameters=list(result.rows),
        count=result.count,
    )


@router.post("/{procedure}/execute", response_model=ProcedureResultResponse)
def invoke_procedure(
    database: str,
    procedure: str,
    body: Optional[InvokeProcedureRequest] = None,
    gateway: QueryGateway = Depends(get_gateway),
):
    """Invoke the procedure; parameters are bound by the driver, never inlined."""
    body = body or InvokeProcedureRequest()
    result = gateway.execute(
        database,
        OperationKind.INVOKE_PROCEDURE,
        {"procedure": procedure, "parameters": body.parameters},
    )
    return ProcedureResultResponse(
        database=database,
        procedure=procedure,
        rows=list(result.rows),
        count=result.count,
    )
