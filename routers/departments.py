import logging
import math

from fastapi import APIRouter, Depends, HTTPException

import database
from auth import get_current_user, require_admin
from schemas import EmployeeCountUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


def _department_filter(department_id: str) -> dict:
    object_id = database.parse_object_id(department_id)
    return {"_id": object_id} if object_id is not None else {"name": department_id}


@router.get("")
def list_departments(current_user: dict = Depends(get_current_user)):
    try:
        return database.serialize_doc(database.get_documents("departments", sort=[("name", 1)]))
    except Exception as e:
        logger.error(f"Erro ao buscar departamentos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar departamentos")


@router.get("/with-employees")
def departments_with_employees(current_user: dict = Depends(get_current_user)):
    try:
        departments = database.get_documents("departments", sort=[("name", 1)])
        return [
            {
                "_id": str(d["_id"]),
                "name": d["name"],
                "employeeCount": d.get("employeeCount", 0),
                "color": d.get("color"),
            }
            for d in departments
        ]
    except Exception as e:
        logger.error(f"Erro ao buscar departamentos com funcionários: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar departamentos")


@router.get("/{department_id}")
def get_department(department_id: str, current_user: dict = Depends(get_current_user)):
    try:
        department = database.get_document("departments", _department_filter(department_id))
        if department is None:
            raise HTTPException(status_code=404, detail="Departamento não encontrado")
        return database.serialize_doc(department)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao buscar departamento {department_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar departamento")


@router.put("/{department_id}/employee-count")
def update_employee_count(department_id: str, body: EmployeeCountUpdate, current_user: dict = Depends(require_admin)):
    count = body.employeeCount
    if count is None or count < 0 or math.isnan(count):
        raise HTTPException(status_code=400, detail="Contagem de funcionários inválida.")
    try:
        query = _department_filter(department_id)
        if not database.update_document("departments", query, {"employeeCount": int(count)}):
            raise HTTPException(status_code=404, detail="Departamento não encontrado")
        logger.info(f"Contagem de funcionários de {department_id} atualizada para {int(count)}")
        return database.serialize_doc(database.get_document("departments", query))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar funcionários de {department_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar contagem de funcionários")
