from routers.documents import build_document_router
from schemas import ADMIN_ROLES

# Any admin reads; only the QA admins publish sensibilizações
router = build_document_router(
    collection="sensibilizacoes",
    item_type="sensibilizacao",
    key_prefix="sensibilizacao",
    label="sensibilização",
    read_roles=ADMIN_ROLES,
    write_roles=("admin_qa",),
)
