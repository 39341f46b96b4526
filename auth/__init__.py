"""auth/ -- Credential issuance and verification for SecurePay Gate.

hashing.py and tokens.py are leaf components; store.py persists credential
records; service.py ties them together; throttle.py guards the HTTP entry
points; dependencies.py adapts all of it to FastAPI Depends().

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/ or payments/.
api/ imports from auth/, not the other way around.
"""
