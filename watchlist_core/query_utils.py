from flask import Request
from .errors import validate_order_param
from models import Movie

ORDER_COLUMNS = {
    "id": Movie.id,
    "title": Movie.title,
    "release_date": Movie.release_date,
}

def build_movie_query(req_args: Request.args.__class__):
    qry = Movie.query

    q = (req_args.get("q") or "").strip()
    order = validate_order_param()

    if q:
        qry = qry.filter(Movie.title.ilike(f"%{q}%"))

    column = ORDER_COLUMNS[order.lstrip("-")]
    if order.startswith("-"):
        qry = qry.order_by(column.desc().nulls_last(), Movie.id.asc())
    else:
        qry = qry.order_by(column.asc().nulls_last(), Movie.id.asc())

    return qry
