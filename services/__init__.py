# services/__init__.py

# This file makes the 'services' directory a Python package. Modules are
# imported directly (e.g. `from services.bulk_mutations import ...`).
