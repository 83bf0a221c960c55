from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.engine import Engine
from sqlmodel import Session

from tenantgate.core.gateway import Gateway


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def get_db(engine: Annotated[Engine, Depends(get_engine)]) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def get_gateway(request: Request) -> Gateway | None:
    return getattr(request.app.state, "gateway", None)


EngineDep = Annotated[Engine, Depends(get_engine)]
SessionDep = Annotated[Session, Depends(get_db)]
GatewayDep = Annotated[Gateway | None, Depends(get_gateway)]
