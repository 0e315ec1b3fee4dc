from uuid import uuid4
from assist.models.catalog import CatalogService
from assist.models.users import Actor
from assist.repository.catalog_repo import CatalogRepository
from assist.schemas.catalog import ServiceRequest
from assist.utils.custom_exceptions import Forbidden, NotFoundException, Unauthenticated


class CatalogManager:
    def __init__(self, catalog_repo: CatalogRepository):
        self.catalog_repo = catalog_repo

    def add_service(self, actor: Actor, req: ServiceRequest) -> CatalogService:
        self._require_admin(actor)
        service = CatalogService(
            service_id=str(uuid4()),
            title=req.title,
            category=req.category,
            price=req.price,
            duration_minutes=req.duration_minutes,
        )
        self.catalog_repo.add_service(service)
        return service

    def set_service_active(self, actor: Actor, service_id: str, is_active: bool):
        self._require_admin(actor)
        self.catalog_repo.update_service_status(service_id, is_active)

    def get_service(self, service_id: str) -> CatalogService:
        service = self.catalog_repo.get_service_by_id(service_id)
        if service is None:
            raise NotFoundException("service", service_id)
        return service

    @staticmethod
    def _require_admin(actor: Actor):
        if actor is None:
            raise Unauthenticated()
        if not actor.is_admin:
            raise Forbidden("Only admins can manage the service catalog")
