from fastapi import APIRouter

from cryptotrend.dependencies import CurrentUserId, SimulatorServiceDep
from cryptotrend.simulator.schemas import SimulationRequest, SimulationResult

router = APIRouter()


@router.post("/run", response_model=SimulationResult)
async def run_simulation(
    request: SimulationRequest,
    service: SimulatorServiceDep,
    user_id: CurrentUserId,
) -> SimulationResult:
    return await service.run(user_id, request)
