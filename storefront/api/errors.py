# storefront/api/errors.py
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.errors import StorefrontError


def http_error(exc: StorefrontError) -> HTTPException:
    """Blad domenowy -> odpowiedz HTTP, komunikat jest bezpieczny dla klienta."""
    if exc.details:
        return HTTPException(status_code=exc.status_code, detail={"message": exc.message, "details": exc.details})
    return HTTPException(status_code=exc.status_code, detail=exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # zle dane wejsciowe to 400 z lista pol, nie 422
    details = [
        {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "details": details})
