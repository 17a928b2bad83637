"""Write the current family tree to a standalone plotly HTML file."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from sqlalchemy.orm import Session

from . import config, crud
from .db import create_db_engine, init_db
from .plotly_graph import build_forest_figure, write_html

logger = logging.getLogger(__name__)


def render(database_url: str, out_path: Path) -> int:
    """Render the forest stored at ``database_url``; returns the number of roots."""
    engine = create_db_engine(database_url)
    init_db(engine)
    with Session(engine) as db:
        forest = crud.get_forest(db)
    write_html(build_forest_figure(forest), str(out_path))
    logger.info("Rendered %d root(s) to %s", len(forest), out_path)
    engine.dispose()
    return len(forest)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("out_path", help="HTML file to write")
    parser.add_argument("--database-url", default=config.DATABASE_URL,
                        help="SQLAlchemy URL of the database to read")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL)
    out_path = Path(args.out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    roots = render(args.database_url, out_path)
    print(f"Wrote {out_path} ({roots} root(s))")


if __name__ == "__main__":
    main()
