# mentorhub/services/__init__.py
# Lifecycle managers and supporting services.
