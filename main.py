import uvicorn

from qbank.app import app
from qbank.config import HOST, PORT


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
