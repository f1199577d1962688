from fastapi import Request

from socialnet.concepts.sessioning import SessionDoc


def get_session(request: Request) -> SessionDoc:
    """
    FastAPI dependency returning the caller's session.

    ``SessionMiddleware`` decodes the signed cookie into ``request.session``
    before the handler runs and re-signs whatever the handler left in it
    on the way out.  The mapping only holds the login token; the Sessioning
    concept looks that token up in the ``sessions`` table.
    """
    return request.session
