import uvicorn

from hyjackett import config

if __name__ == "__main__":
    uvicorn.run(
        "hyjackett.main:app",
        host=config.HOST,
        port=config.PORT,
        workers=config.WORKERS,
        loop="uvloop",
        log_level="error",
    )
