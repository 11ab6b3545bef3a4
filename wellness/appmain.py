from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from wellness.routers import rou_calendar, rou_availability
from wellness.services.svc_store import StoreUnavailable
from wellness.configuration.monitor import instrument_fastapi

app = FastAPI(
    title="Wellness Calendar API",
    description="Availability calendar API for the wellness booking platform",
    version="1.0.0"
)

# Include all routers
app.include_router(rou_calendar.router)
app.include_router(rou_availability.router)

@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=503, content={"error": str(exc)})

# Instrument app with Azure Monitor
instrument_fastapi(app)

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
