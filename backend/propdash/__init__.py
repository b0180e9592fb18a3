# backend/propdash/__init__.py
