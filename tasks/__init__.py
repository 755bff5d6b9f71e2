"""tasks/ -- Task domain types and persistence for TaskHub.

Layer rule: tasks/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or auth/. Ownership checks belong to the
route layer, which combines tasks/ records with auth/ identities.
"""
