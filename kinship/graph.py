from sqlalchemy.orm import Session

from . import crud


def build_graph(db: Session):
    people = crud.list_people(db)
    rels = crud.list_relationships(db)
    nodes = [{"data": {
        "id": p.id,
        "label": p.full_name,
        "birth_date": p.birth_date.isoformat() if p.birth_date else None,
        "death_date": p.death_date.isoformat() if p.death_date else None,
        "photo_url": p.photo_url,
    }} for p in people]
    edges = [{
        "data": {"id": r.id, "source": r.parent_id, "target": r.child_id, "type": "PARENT_OF"}
    } for r in rels]
    return {"nodes": nodes, "edges": edges}
