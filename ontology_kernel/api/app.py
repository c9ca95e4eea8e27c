"""
Ontology Kernel API — FastAPI endpoints.

A thin translation layer over the kernel:
- Substance, kind, attribute and mode records
- Causal relations and the four-causes summary
- Potentialities, readiness checks and actualization
- Substance evolution
"""

import json
from typing import List, Optional, Union

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ontology_kernel.causality.graph import CausalGraph
from ontology_kernel.conditions.parser import scalar_to_text
from ontology_kernel.config import Settings, get_settings
from ontology_kernel.errors import (
    AlreadyActualizedError,
    ConditionsUnmetError,
    NotFoundError,
    StoreFailure,
    ValidationError,
)
from ontology_kernel.models.ontology import DataType
from ontology_kernel.models.transition import ScalarValue
from ontology_kernel.store.fact_store import SQLiteFactStore
from ontology_kernel.transition.engine import TransitionEngine


# --- Request Models ---

class SubstanceCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    kind: str = Field(min_length=1)
    essence: str = Field(min_length=1)


class SubstanceUpdateRequest(BaseModel):
    name: Optional[str] = None
    kind: Optional[str] = None
    essence: Optional[str] = None


class KindCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""


class AttributeCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    data_type: DataType


class ModeCreateRequest(BaseModel):
    value: ScalarValue
    substance_id: str
    attribute_id: str


class CauseCreateRequest(BaseModel):
    from_entity: str = Field(min_length=1)
    to_entity: str = Field(min_length=1)
    cause_type: str


class PotentialityCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    conditions: Union[str, List[dict]] = ""   # Specification text, or the list itself
    substance_id: str


class ActualizeRequest(BaseModel):
    description: str = Field(min_length=1)


# --- Error Mapping ---

def _error_body(kind: str, exc: Exception) -> dict:
    return {"error": kind, "detail": str(exc)}


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc))

    @app.exception_handler(ValidationError)
    async def validation_failed(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content=_error_body("validation_error", exc))

    @app.exception_handler(ConditionsUnmetError)
    async def conditions_unmet(request: Request, exc: ConditionsUnmetError):
        body = _error_body("conditions_unmet", exc)
        body["unmet_conditions"] = exc.unmet
        return JSONResponse(status_code=409, content=body)

    @app.exception_handler(AlreadyActualizedError)
    async def already_actualized(request: Request, exc: AlreadyActualizedError):
        return JSONResponse(status_code=409, content=_error_body("already_actualized", exc))

    @app.exception_handler(StoreFailure)
    async def store_failure(request: Request, exc: StoreFailure):
        return JSONResponse(status_code=500, content=_error_body("store_failure", exc))


# --- Application Factory ---

def create_app(
    store: Optional[SQLiteFactStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()

    app = FastAPI(
        title="Ontology Kernel API",
        description="Substances, potentialities and their actualization",
        version="0.1.0",
    )

    # Initialize components
    fs = store or SQLiteFactStore(settings.db_path)
    engine = TransitionEngine(fs, config=settings.engine_config())
    graph = CausalGraph(fs)

    app.state.store = fs
    app.state.engine = engine
    app.state.causal_graph = graph

    _register_error_handlers(app)
    api = APIRouter(prefix="/api/v1")

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "message": "Ontology Kernel API is running"}

    @app.get("/")
    def root():
        return {"message": "Ontology Kernel API is running", "rest_api": "/api/v1/"}

    # === SUBSTANCES ===

    @api.get("/substances")
    def list_substances():
        return [s.model_dump(mode="json") for s in fs.list_substances()]

    @api.post("/substances", status_code=201)
    def create_substance(req: SubstanceCreateRequest):
        substance = fs.create_substance(req.name, req.kind, req.essence)
        return substance.model_dump(mode="json")

    @api.get("/substances/{substance_id}")
    def get_substance(substance_id: str):
        """A substance together with its modes and transition records."""
        substance = fs.get_substance(substance_id)
        if not substance:
            raise NotFoundError("substance", substance_id)
        data = substance.model_dump(mode="json")
        data["modes"] = [m.model_dump(mode="json") for m in fs.list_modes_for_substance(substance_id)]
        data["potentialities"] = [
            p.model_dump(mode="json")
            for p in engine.get_potentialities_for_substance(substance_id)
        ]
        data["actualities"] = [
            a.model_dump(mode="json")
            for a in engine.get_actualities_for_substance(substance_id)
        ]
        return data

    @api.put("/substances/{substance_id}")
    def update_substance(substance_id: str, req: SubstanceUpdateRequest):
        substance = fs.update_substance(
            substance_id, name=req.name, kind=req.kind, essence=req.essence
        )
        return substance.model_dump(mode="json")

    @api.delete("/substances/{substance_id}")
    def delete_substance(substance_id: str):
        if not fs.delete_substance(substance_id):
            raise NotFoundError("substance", substance_id)
        return {"message": "substance deleted", "substance_id": substance_id}

    # === KINDS, ATTRIBUTES, MODES ===

    @api.get("/kinds")
    def list_kinds():
        return [k.model_dump(mode="json") for k in fs.list_kinds()]

    @api.post("/kinds", status_code=201)
    def create_kind(req: KindCreateRequest):
        return fs.create_kind(req.name, req.description).model_dump(mode="json")

    @api.get("/attributes")
    def list_attributes():
        return [a.model_dump(mode="json") for a in fs.list_attributes()]

    @api.post("/attributes", status_code=201)
    def create_attribute(req: AttributeCreateRequest):
        attribute = fs.create_attribute(req.name, req.data_type, req.description)
        return attribute.model_dump(mode="json")

    @api.get("/modes")
    def list_modes():
        return [m.model_dump(mode="json") for m in fs.list_modes()]

    @api.post("/modes", status_code=201)
    def create_mode(req: ModeCreateRequest):
        mode = fs.create_mode(req.substance_id, req.attribute_id, scalar_to_text(req.value))
        return mode.model_dump(mode="json")

    # === CAUSALITY ===

    @api.post("/causes", status_code=201)
    def add_cause(req: CauseCreateRequest):
        relation = graph.add_causal_relation(req.from_entity, req.to_entity, req.cause_type)
        return relation.model_dump(mode="json")

    @api.get("/substances/{entity_id}/causes")
    def get_causes(entity_id: str):
        """Last-write-wins summary: cause kind → "to" endpoint."""
        return graph.get_four_causes(entity_id)

    @api.get("/substances/{entity_id}/causes/edges")
    def get_cause_edges(entity_id: str):
        grouped = graph.get_causal_relations(entity_id)
        return {
            kind: [r.model_dump(mode="json") for r in relations]
            for kind, relations in grouped.items()
        }

    # === POTENTIALITIES ===

    @api.get("/potentialities")
    def list_potentialities():
        return [p.model_dump(mode="json") for p in fs.list_potentialities()]

    @api.post("/potentialities", status_code=201)
    def create_potentiality(req: PotentialityCreateRequest):
        conditions = req.conditions
        if isinstance(conditions, list):
            conditions = json.dumps(conditions) if conditions else ""
        potentiality = engine.create_potentiality(
            substance_id=req.substance_id,
            name=req.name,
            description=req.description,
            conditions=conditions,
        )
        return potentiality.model_dump(mode="json")

    @api.get("/potentialities/{potentiality_id}")
    def get_potentiality(potentiality_id: str):
        potentiality = engine.get_potentiality(potentiality_id)
        data = potentiality.model_dump(mode="json")
        data["status"] = engine.get_status(potentiality_id).value
        return data

    @api.get("/potentialities/{potentiality_id}/conditions")
    def check_conditions(potentiality_id: str):
        return engine.readiness_report(potentiality_id).model_dump(mode="json")

    @api.post("/potentialities/{potentiality_id}/actualize", status_code=201)
    def actualize_potentiality(potentiality_id: str, req: ActualizeRequest):
        actuality = engine.actualize(potentiality_id, req.description)
        return actuality.model_dump(mode="json")

    # === EVOLUTION ===

    @api.get("/substances/{substance_id}/evolution")
    def get_substance_evolution(substance_id: str):
        return engine.get_substance_evolution(substance_id).model_dump(mode="json")

    app.include_router(api)
    return app


# Default application instance
app = create_app()
