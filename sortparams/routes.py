from flask import Blueprint, current_app, jsonify, request, url_for

from sortparams.models import Person
from sortparams.sort import Sort
from sortparams.sort_utils import (
    apply_sort,
    get_sort_resolver,
    normalize_sort,
    resolve_request_sort,
    sort_url_for,
)

bp = Blueprint('main', __name__)

PEOPLE_SORT_KEYS = {'username', 'firstname', 'lastname', 'role', 'created_at'}


def _default_people_sort() -> Sort:
    properties = current_app.config.get('PEOPLE_DEFAULT_SORT') or ['lastname']
    return Sort.by(*properties)


def _sorted_people(query, sort: Sort):
    # id keeps paging stable when sort keys tie
    return apply_sort(query, Person, sort, PEOPLE_SORT_KEYS).order_by(Person.id)


def _describe_sort(sort: Sort) -> list[dict]:
    return [
        {
            'property': order.property,
            'direction': order.direction.value,
            'ignore_case': order.ignore_case,
        }
        for order in sort
    ]


@bp.route('/people')
def people_list():
    page = request.args.get('page', 1, type=int)
    role = request.args.get('role', '').strip()
    per_page = current_app.config['PEOPLE_PER_PAGE']
    sort = normalize_sort(resolve_request_sort(), PEOPLE_SORT_KEYS, _default_people_sort())

    query = Person.query
    if role:
        query = query.filter(Person.role == role)

    total_count = query.count()
    total_pages = max(1, (total_count + per_page - 1) // per_page)
    page = max(1, min(page, total_pages))

    people = (
        _sorted_people(query, sort)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    link_values = {'role': role} if role else {}
    links = {'self': sort_url_for('main.people_list', sort, page=page, **link_values)}
    if page < total_pages:
        links['next'] = sort_url_for('main.people_list', sort, page=page + 1, **link_values)

    current_app.logger.debug("People list page=%s sort=%s", page, sort)

    return jsonify(
        items=[person.to_dict() for person in people],
        sort=_describe_sort(sort),
        page=page,
        total_pages=total_pages,
        total_count=total_count,
        links=links,
    )


@bp.route('/directory')
def directory():
    default_sort = _default_people_sort()
    members_sort = normalize_sort(resolve_request_sort('members'), PEOPLE_SORT_KEYS, default_sort)
    admins_sort = normalize_sort(resolve_request_sort('admins'), PEOPLE_SORT_KEYS, default_sort)

    members = _sorted_people(Person.query.filter(Person.role == 'member'), members_sort).all()
    admins = _sorted_people(Person.query.filter(Person.role == 'admin'), admins_sort).all()

    resolver = get_sort_resolver()
    self_url = resolver.build_url(url_for('main.directory'), members_sort, 'members')
    self_url = resolver.build_url(self_url, admins_sort, 'admins')

    return jsonify(
        members=[person.to_dict() for person in members],
        admins=[person.to_dict() for person in admins],
        sort={
            'members': _describe_sort(members_sort),
            'admins': _describe_sort(admins_sort),
        },
        links={'self': self_url},
    )
