# Importing every model module registers its tables on Base.metadata
from models import users, log, category, product, promotion, settings, client, sale, quote, register, team  # noqa: F401
