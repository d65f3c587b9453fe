import hashlib, json

def payload_hash(payload) -> str:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(exclude_unset=True)
    elif not isinstance(payload, dict):
        payload = {}
    s = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()
