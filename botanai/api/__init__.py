# botanai/api/__init__.py
# Import the router
from botanai.api.routes import router
