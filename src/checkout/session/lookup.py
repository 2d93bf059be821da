"""Finding checkout sessions again from what the gateway hands back."""

from protean.utils.globals import current_domain

from checkout.session.session import CheckoutSession


def load_session(session_id) -> CheckoutSession:
    return current_domain.repository_for(CheckoutSession).get(session_id)


def save_session(session: CheckoutSession) -> None:
    current_domain.repository_for(CheckoutSession).add(session)


def find_by_order_id(order_id) -> CheckoutSession | None:
    if not order_id:
        return None
    repo = current_domain.repository_for(CheckoutSession)
    sessions = repo._dao.query.filter(order_id=str(order_id)).all().items
    return sessions[0] if sessions else None


def find_by_client_secret(client_secret) -> CheckoutSession | None:
    if not client_secret:
        return None
    repo = current_domain.repository_for(CheckoutSession)
    sessions = repo._dao.query.filter(client_secret=client_secret).all().items
    return sessions[0] if sessions else None
