from fastapi import APIRouter
from fastapi.exceptions import HTTPException

# Utils
from utils.log_utils import LogUtil

# Services
from services.conversation_service import ConversationService
from services.flow_lifecycle_service import FlowLifecycleService
from services.follow_up_scheduler_service import FollowUpSchedulerService

# Models
from models.flow_record import FlowStage, EntryType
from models.request.start_flow_request import StartFlowRequest
from models.request.update_stage_request import UpdateStageRequest
from models.response.start_flow_response import StartFlowResponse
from models.response.follow_up_sweep_response import FollowUpSweepResponse

# Exceptions
from exceptions.flow_exception import FlowException

def create_flow_api(
    log_util: LogUtil,
    conversation_service: ConversationService,
    flow_lifecycle_service: FlowLifecycleService,
    follow_up_scheduler_service: FollowUpSchedulerService
) -> APIRouter:
    router = APIRouter(
        prefix="/flow",
        tags=["flow"],
    )

    @router.post("/start", response_model=StartFlowResponse)
    async def start_flow(request: StartFlowRequest):
        try:
            result = await conversation_service.start_flow(
                user_id=request.user_id,
                entry_type=request.entry_type,
                display_name=request.display_name,
                metadata=request.metadata
            )
            return StartFlowResponse(
                flow=result["flow"],
                message_sent=result["message_sent"],
                delivered=result["delivered"]
            )
        except FlowException as e:
            log_util.error(service_name="FlowAPI", message=f"Error starting flow for {request.user_id}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)
        except Exception as e:
            log_util.error(service_name="FlowAPI", message=f"Error starting flow for {request.user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/list")
    async def get_flows_list():
        flows = flow_lifecycle_service.list_flows()
        return {
            "count": len(flows),
            "flows": [flow.model_dump(mode="json") for flow in flows]
        }

    @router.get("/config")
    async def get_flow_config():
        return {
            "stages": [stage.value for stage in FlowStage],
            "entry_types": [entry_type.value for entry_type in EntryType]
        }

    @router.post("/process-followups", response_model=FollowUpSweepResponse)
    async def process_follow_ups():
        """
        Run one follow-up sweep now (cron trigger).
        """
        try:
            processed_count = await follow_up_scheduler_service.run_sweep()
            return FollowUpSweepResponse(processed_count=processed_count)
        except Exception as e:
            log_util.error(service_name="FlowAPI", message=f"Error processing follow-ups: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{user_id}")
    async def get_flow(user_id: str):
        flow = flow_lifecycle_service.get_flow(user_id)
        if flow is None:
            raise HTTPException(status_code=404, detail="No flow found for this user")
        return flow.model_dump(mode="json")

    @router.post("/{user_id}/stage")
    async def update_flow_stage(user_id: str, request: UpdateStageRequest):
        """
        Manually move a flow to another stage.

        Request body:
        {
            "stage": "waiting_payment",
            "notes": "Moved by operator"
        }
        """
        try:
            flow = await conversation_service.update_stage(
                user_id=user_id,
                stage=request.stage,
                notes=request.notes
            )
            return {
                "success": True,
                "flow": flow.model_dump(mode="json")
            }
        except FlowException as e:
            log_util.error(service_name="FlowAPI", message=f"Error updating stage for {user_id}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)
        except Exception as e:
            log_util.error(service_name="FlowAPI", message=f"Error updating stage for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    return router
