import uvicorn

from quizgen.core.config import settings


def main() -> None:
    uvicorn.run("quizgen.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
