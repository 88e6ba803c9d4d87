# Schemas package init
"""
VocalSaaS Backend: API Schemas
===============================

Pydantic request/response models. Every model derives from
`common.CamelModel`, so JSON keys are camelCase while Python attributes
stay snake_case.
"""
