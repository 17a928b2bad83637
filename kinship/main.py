import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from . import config, crud, graph, schemas
from .db import engine, get_db, init_db
from .errors import (
    CircularRelationshipError, DuplicateRelationshipError, KinshipError,
    NotFoundError, PersistenceError, SelfRelationshipError,
)
from .plotly_graph import build_forest_figure
from .tree import forest_stats

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS = [
    (SelfRelationshipError, 400),
    (NotFoundError, 404),
    (DuplicateRelationshipError, 409),
    (CircularRelationshipError, 409),
    (PersistenceError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    yield


app = FastAPI(title="Kinship", lifespan=lifespan)


@app.exception_handler(KinshipError)
async def kinship_error_handler(request: Request, exc: KinshipError):
    status = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    logger.info("%s %s failed with %s (%d)", request.method, request.url.path, exc.code, status)
    return JSONResponse(status_code=status, content={"detail": str(exc), "code": exc.code})


@app.get("/health")
def health():
    return {"ok": True}


# ── People ──

@app.get("/people", response_model=list[schemas.PersonOut])
def people(db: Session = Depends(get_db)):
    return crud.list_people(db)


@app.post("/people", response_model=schemas.PersonOut)
def add_person(body: schemas.PersonCreate, db: Session = Depends(get_db)):
    return crud.create_person(db, **body.to_row())


@app.get("/people/{person_id}", response_model=schemas.PersonWithRelationships)
def get_person(person_id: int, db: Session = Depends(get_db)):
    person = crud.get_person(db, person_id)
    if person is None:
        raise HTTPException(404, f"Person with id {person_id} not found")
    return person


@app.patch("/people/{person_id}", response_model=schemas.PersonOut)
def update_person(person_id: int, body: schemas.PersonUpdate, db: Session = Depends(get_db)):
    return crud.update_person(db, person_id, **body.changes())


@app.delete("/people/{person_id}", response_model=schemas.SuccessOut)
def delete_person(person_id: int, db: Session = Depends(get_db)):
    return crud.delete_person(db, person_id)


# ── Relationships ──

@app.get("/relationships", response_model=list[schemas.RelationshipOut])
def relationships(db: Session = Depends(get_db)):
    return crud.list_relationships(db)


@app.post("/relationships", response_model=schemas.RelationshipOut)
def add_rel(body: schemas.RelCreate, db: Session = Depends(get_db)):
    return crud.create_relationship(db, body.parent_id, body.child_id)


@app.delete("/relationships", response_model=schemas.SuccessOut)
def remove_rel(parent_id: int, child_id: int, db: Session = Depends(get_db)):
    return crud.delete_relationship(db, parent_id, child_id)


# ── Tree ──

@app.get("/tree", response_model=list[schemas.PersonWithRelationships])
def family_tree(db: Session = Depends(get_db)):
    return crud.get_family_tree(db)


@app.get("/tree/forest", response_model=schemas.ForestOut)
def family_forest(db: Session = Depends(get_db)):
    forest = crud.get_forest(db)
    return {"roots": forest, "stats": forest_stats(forest)}


@app.get("/tree/figure", include_in_schema=False)
def family_figure(db: Session = Depends(get_db)):
    fig = build_forest_figure(crud.get_forest(db))
    return Response(content=fig.to_json(), media_type="application/json")


@app.get("/graph", response_model=schemas.GraphOut)
def get_graph(db: Session = Depends(get_db)):
    return graph.build_graph(db)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kinship.main:app", host=config.HOST, port=config.PORT)
