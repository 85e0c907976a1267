from models import users, product, cart, payment, order, log  # noqa: F401
