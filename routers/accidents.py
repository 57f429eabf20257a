from routers.documents import build_document_router
from schemas import ADMIN_ROLES

router = build_document_router(
    collection="accidents",
    item_type="accident",
    key_prefix="accidents",
    label="acidente",
    read_roles=ADMIN_ROLES,
    write_roles=ADMIN_ROLES,
)
