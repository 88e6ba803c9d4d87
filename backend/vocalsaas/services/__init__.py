# Services package init
"""
VocalSaaS Backend: Services Layer
==================================

What:  Business logic between routes (HTTP) and the database / external providers.
How:   Services receive an AsyncSession per call and their collaborators
       (vendor client, storage) through the constructor, so routes and tests
       can swap any of them.

Service Inventory:
    - TokenVerifier (identity.py):        bearer credential → Principal
    - VoiceVendor (vendor_base.py):       abstract voice vendor contract
    - ElevenLabsService:                  VoiceVendor over the ElevenLabs REST API
    - VoiceModelRegistry (voice_service): owner-scoped voice models mirrored at the vendor
    - SynthesisGateway:                   script + voice → audio + completed session
    - SessionStore / JournalStore:        owner-scoped paginated CRUD
    - AudioStorage:                       upload validation and generated-audio files
"""
