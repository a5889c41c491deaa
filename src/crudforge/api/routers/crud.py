# src/crudforge/api/routers/crud.py
"""CRUD routes for one registered model."""

from typing import Any, Callable, Dict, Generic, List, TypeVar

from fastapi import APIRouter, Depends, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...core.config import ForgeConfig
from ...core.query import FindConditions, pagination_header, parse_query
from ...db.models import ModelDescriptor
from ..provider import ResourceProvider
from ..schemas import create_input_model, create_output_model, record_to_dict

T = TypeVar("T")

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"description": "Malformed query or body"},
    500: {"description": "Store error"},
}


class ResourceController(Generic[T]):
    """Registers list/get/create/update/delete routes for a model on a router."""

    def __init__(
        self,
        name: str,
        descriptor: ModelDescriptor[T],
        router: APIRouter,
        db_dependency: Callable,
        config: ForgeConfig,
    ):
        self.name = name
        self.descriptor = descriptor
        self.router = router
        self.db_dependency = db_dependency
        self.config = config

        self.input_model = create_input_model(descriptor)
        self.output_model = create_output_model(descriptor)

    def provider(self, db: Session) -> ResourceProvider[T]:
        return ResourceProvider(self.descriptor, db, batch_size=self.config.batch_size)

    def parse(self, request: Request) -> FindConditions:
        return parse_query(request.query_params, self.config.query_profile)

    def _get_route_path(self, operation: str = "") -> str:
        return f"/{operation}" if operation else ""

    def _serialize(self, record: Any, conditions: FindConditions | None = None) -> Dict[str, Any]:
        relations = list(self.descriptor.preloads)
        if conditions is not None:
            relations.extend(conditions.preloads)
        return record_to_dict(record, relations)

    def _listing(
        self, records: List[T], total: int, conditions: FindConditions, serialize=None
    ) -> JSONResponse:
        serialize = serialize or self._serialize
        code, content_range = pagination_header(conditions.pagination, total)
        return JSONResponse(
            status_code=code,
            content=jsonable_encoder([serialize(r, conditions) for r in records]),
            headers={"Content-Range": content_range},
        )

    # ? Routes -------------------------------------------------------------------------------

    def read(self) -> None:
        """Add the list route: filters, sort and pagination from the query string."""

        @self.router.get(
            self._get_route_path(),
            response_model=List[self.output_model],
            responses=ERROR_RESPONSES,
            summary=f"List {self.name}",
            description=f"Retrieve {self.name} records with filtering, sorting and pagination",
        )
        def list_resources(request: Request, db: Session = Depends(self.db_dependency)):
            conditions = self.parse(request)
            provider = self.provider(db)
            records = provider.find(conditions)
            total = provider.count(conditions.filters)
            return self._listing(records, total, conditions)

    def read_one(self) -> None:
        @self.router.get(
            self._get_route_path("{id}"),
            response_model=self.output_model,
            responses={**ERROR_RESPONSES, 404: {"description": "Not found"}},
            summary=f"Get one {self.name} record",
        )
        def get_resource(id: int, db: Session = Depends(self.db_dependency)):
            record = self.provider(db).find_one(id)
            return JSONResponse(content=jsonable_encoder(self._serialize(record)))

    def create(self) -> None:
        @self.router.post(
            self._get_route_path(),
            status_code=201,
            response_model=self.output_model,
            responses=ERROR_RESPONSES,
            summary=f"Create {self.name}",
        )
        def create_resource(resource: self.input_model, db: Session = Depends(self.db_dependency)):
            data = resource.model_dump(exclude_unset=True)
            record = self.provider(db).insert(self.descriptor.model(**data))
            return JSONResponse(status_code=201, content=jsonable_encoder(self._serialize(record)))

    def update(self) -> None:
        @self.router.put(
            self._get_route_path("{id}"),
            status_code=201,
            response_model=self.output_model,
            responses={**ERROR_RESPONSES, 404: {"description": "Not found"}},
            summary=f"Update {self.name}",
        )
        def update_resource(
            id: int, resource: self.input_model, db: Session = Depends(self.db_dependency)
        ):
            provider = self.provider(db)
            provider.update(id, self.descriptor.model(**resource.model_dump(exclude_unset=True)))
            # the update does not report missing rows, re-read to confirm
            record = provider.find_one(id)
            return JSONResponse(status_code=201, content=jsonable_encoder(self._serialize(record)))

    def delete(self) -> None:
        @self.router.delete(
            self._get_route_path("{id}"),
            status_code=204,
            responses={
                **ERROR_RESPONSES,
                404: {"description": "Not found"},
                409: {"description": "Record cannot be deleted"},
            },
            summary=f"Delete {self.name}",
        )
        def delete_resource(id: int, db: Session = Depends(self.db_dependency)):
            self.provider(db).delete(id)
            return Response(status_code=204)

    def nest(self, child: "ResourceController", relation: str) -> None:
        """Add GET /{id}/{relation}, listing the child rows of one parent."""
        rel = self.descriptor.relations.get(relation)
        if rel is None:
            raise TypeError(f"{self.descriptor.name} has no relation {relation!r}")
        if not rel.uselist or rel.mapper.class_ is not child.descriptor.model:
            raise TypeError(
                f"{self.descriptor.name}.{relation} is not a one-to-many relation to {child.descriptor.name}"
            )

        @self.router.get(
            self._get_route_path(f"{{id}}/{relation.lower()}"),
            response_model=List[child.output_model],
            responses=ERROR_RESPONSES,
            summary=f"List {relation} of one {self.name} record",
        )
        def list_nested(id: int, request: Request, db: Session = Depends(self.db_dependency)):
            conditions = child.parse(request)
            provider = child.provider(db)
            records = provider.find_assoc(self.descriptor, id, relation, conditions)
            total = provider.count_assoc(self.descriptor, id, relation, conditions.filters)
            return self._listing(records, total, conditions, serialize=child._serialize)

    def generate_all(self) -> None:
        """Generate all CRUD routes."""
        self.read()
        self.create()
        self.read_one()
        self.update()
        self.delete()
