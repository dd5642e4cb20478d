# backend/pokebrowser/__main__.py

import uvicorn

if __name__ == "__main__":
    # reload=True interferes with lifespan startup/shutdown; keep it off
    uvicorn.run("pokebrowser.main:app", host="0.0.0.0", port=8000, reload=False, lifespan="on")
