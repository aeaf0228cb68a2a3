import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from spin_league import __version__
from spin_league.api.matches.routes import router as matches_router
from spin_league.api.middleware import LoggingMiddleware
from spin_league.api.participants.routes import router as participants_router
from spin_league.api.tournaments.routes import router as tournaments_router
from spin_league.config import config
from spin_league.db import Database
from spin_league.exceptions import LeagueError

logger = logging.getLogger(__name__)

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        database: Database to serve from; defaults to one built from config
    """
    if database is None:
        database = Database(
            config.get_database_url(),
            echo=config.db_echo,
            pool_size=config.db_pool_size
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect and create the schema on startup, dispose the engine on shutdown."""
        try:
            await database.initialize()
            await database.create_tables()
            logger.info("Database validation passed on startup")
        except Exception as e:
            logger.error(f"Startup validation failed: {e}")
            raise

        app.state.database = database
        yield
        await database.close()

    app = FastAPI(
        title="Spin League API",
        description="Tournament progression engine for spinning-top leagues",
        version=__version__,
        docs_url="/api/docs" if not config.is_production else None,
        redoc_url="/api/redoc" if not config.is_production else None,
        openapi_url="/openapi.json" if not config.is_production else None,
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With"],
    )
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(LeagueError)
    async def league_error_handler(request: Request, exc: LeagueError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Include routers
    app.include_router(participants_router, tags=["Participants"])
    app.include_router(tournaments_router, tags=["Tournaments"])
    app.include_router(matches_router, tags=["Matches"])

    @app.get("/")
    async def root():
        return {"message": "Spin League API", "version": __version__}

    @app.get("/health")
    async def health_check(request: Request):
        db_health = await request.app.state.database.health_check()
        return {
            "status": db_health["status"],
            "service": "spin-league-api",
            "database": db_health
        }

    return app

app = create_app()

def main():
    """Run the API server"""
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    uvicorn.run(app, host=config.api_host, port=config.api_port)

if __name__ == "__main__":
    main()
