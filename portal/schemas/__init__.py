"""
portal/schemas
Pydantic request/response models, grouped by feature area
"""
