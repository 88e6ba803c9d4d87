# Routes package init
"""
VocalSaaS Backend: API Routes Package
======================================

Route Inventory:
    - health.py:    GET  /api/health
    - auth.py:      POST /api/auth/token, GET /api/auth/profile
    - voice.py:     POST /api/voice/upload, POST /api/voice/generate,
                    GET/DELETE /api/voice/models[/{id}]
    - sessions.py:  /api/sessions CRUD + GET /api/sessions/{id}/audio
    - journal.py:   /api/journal/entries CRUD

Routes stay thin: read the request, resolve the Principal, call one service,
shape the response. Errors are raised, never returned; main.py turns them
into JSON.
"""
