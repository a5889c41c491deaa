"""Main ApiForge resource registry."""

from typing import Dict, List, Optional, Type, Union

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.middleware import LogHook
from .api.routers.crud import ResourceController
from .core.config import ForgeConfig
from .core.errors import RestError, StoreError
from .core.logging import color_palette, log
from .db.client import DbClient
from .db.models import describe
from .ui import display_resource_structure, print_welcome

INTERNAL_ERROR = "Internal server error"


class ApiForge:
    """Registers models as REST resources on a FastAPI app."""

    def __init__(self, config: ForgeConfig, db_client: DbClient, app: Optional[FastAPI] = None):
        """Initialize the API Forge instance."""
        self.config = config
        self.db_client = db_client
        self.app = app or FastAPI()
        self.routers: Dict[str, APIRouter] = {}
        self.controllers: Dict[str, ResourceController] = {}
        self._mounted: List[str] = []
        log.set_level("debug" if config.debug_mode else "info")
        self._initialize_app()

    def _initialize_app(self) -> None:
        """Initialize FastAPI app configuration."""
        self.app.title = self.config.project_name
        self.app.version = self.config.version
        self.app.description = self.config.description

        if self.config.author:
            self.app.contact = {"name": self.config.author, "email": self.config.email}

        if self.config.license_info:
            self.app.license_info = self.config.license_info

        # Content-Range must be readable by browser clients
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Range"],
        )
        self.app.add_middleware(LogHook, logger=log, skip_paths=self.config.log_skip_paths)

    def print_welcome(self, host: str = "127.0.0.1", port: int = 8000) -> None:
        """Print welcome message with app information."""
        self.db_client.test_connection()
        print_welcome(self.config.project_name, self.config.version, host, port)

    def _controller(self, ref: Union[str, Type, ResourceController]) -> ResourceController:
        if isinstance(ref, ResourceController):
            return ref
        if isinstance(ref, str):
            return self.controllers[ref]
        for controller in self.controllers.values():
            if controller.descriptor.model is ref:
                return controller
        raise KeyError(f"{ref!r} is not a registered resource")

    def resource(self, model: Type, name: Optional[str] = None) -> ResourceController:
        """
        Register a model as a REST resource at /{name}.

        The model's capabilities are resolved here, once; requests never
        inspect the class again.
        """
        descriptor = describe(model)
        name = (name or descriptor.table.name).lower()
        if name in self.controllers:
            raise ValueError(f"resource {name!r} is already registered")

        router = APIRouter(prefix=f"/{name}", tags=[name.upper()])
        controller = ResourceController(
            name=name,
            descriptor=descriptor,
            router=router,
            db_dependency=self.db_client.get_db,
            config=self.config,
        )
        controller.generate_all()
        self.routers[name] = router
        self.controllers[name] = controller

        log.info(f"Generating CRUD for: {color_palette['resource'](name)} ({descriptor.name})")
        with log.indented():
            for route in router.routes:
                for method in sorted(route.methods):
                    log.debug(f"{color_palette['method'](method)} {color_palette['path'](route.path)}")
        if self.config.debug_mode:
            display_resource_structure(descriptor)
        return controller

    def nested(
        self,
        parent: Union[str, Type, ResourceController],
        child: Union[str, Type, ResourceController],
        relation: str,
    ) -> None:
        """Expose GET /{parent}/{id}/{relation} for a one-to-many relation."""
        parent_ctrl, child_ctrl = self._controller(parent), self._controller(child)
        parent_ctrl.nest(child_ctrl, relation)
        log.info(
            f"Generating nested route: {color_palette['resource'](parent_ctrl.name)}"
            f"/{{id}}/{color_palette['relation'](relation)}"
        )

    def migrate(self) -> None:
        """Create the tables of every registered model."""
        with log.timed("Migrated tables"), self.db_client.SessionLocal() as db:
            for controller in self.controllers.values():
                controller.provider(db).migrate()

    def mount(self) -> FastAPI:
        """Include every generated router in the app. Safe to call again after more registrations."""
        log.section("Mounting Resources")
        for name, router in self.routers.items():
            if name in self._mounted:
                continue
            self.app.include_router(router)
            self._mounted.append(name)
        log.table(
            headers=["Resource", "Model", "Routes"],
            rows=[
                [name, ctrl.descriptor.name, len(self.routers[name].routes)]
                for name, ctrl in self.controllers.items()
            ],
        )
        log.success(f"Mounted {len(self._mounted)} resources")
        return self.app

    def configure_error_handlers(self) -> None:
        """
        Configure global error handlers for the API.

        Every error body has the shape {"error": message}.
        """

        @self.app.exception_handler(RestError)
        async def rest_error_handler(request, exc: RestError):
            message = exc.message
            if isinstance(exc, StoreError) and not self.config.debug_mode:
                message = INTERNAL_ERROR
            return JSONResponse(status_code=exc.status_code, content={"error": message})

        @self.app.exception_handler(RequestValidationError)
        async def validation_error_handler(request, exc: RequestValidationError):
            errors = exc.errors()
            message = "; ".join(
                f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
                for err in errors
            ) or "invalid request"
            return JSONResponse(status_code=400, content={"error": message})

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request, exc: Exception):
            log.error(f"Unhandled exception: {type(exc).__name__}")
            return JSONResponse(
                status_code=500,
                content={"error": str(exc) if self.config.debug_mode else INTERNAL_ERROR},
            )

        log.success("Configured global error handlers")
