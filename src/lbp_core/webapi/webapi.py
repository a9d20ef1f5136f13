from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from flask import jsonify
from flask_openapi3 import Info, Tag
from flask_openapi3 import OpenAPI

from lbp_core.common.enums import PreviewKind
from lbp_core.common.errors import LbpError, PoolNotFound
from lbp_core.common.model import PoolKey
from lbp_core.pool.accounting import LbpProgram
from lbp_core.pricing.engine import PricingEngine
from lbp_core.schedule.weights import WeightSchedule


info = Info(title="Liquidity Bootstrapping Pool API", version="1.0.0")


class PreviewAction(Enum):
    assets_in = "assets_in"
    shares_in = "shares_in"
    shares_out = "shares_out"
    assets_out = "assets_out"


class PoolPreviewRequest(BaseModel):
    asset_token: str = Field(description="Asset token of the pool")
    share_token: str = Field(description="Share token of the pool")
    creator: str = Field(description="Creator of the pool")
    kind: PreviewAction = Field(description="Which quote to compute")
    amount: int = Field(ge=0, description="Fixed leg of the swap in base units")
    now: Optional[int] = Field(None, description="Unix timestamp to quote at, defaults to the server clock")


class PoolStatusRequest(BaseModel):
    asset_token: str = Field(description="Asset token of the pool")
    share_token: str = Field(description="Share token of the pool")
    creator: str = Field(description="Creator of the pool")
    now: Optional[int] = Field(None, description="Unix timestamp, defaults to the server clock")


pool_preview_tag = Tag(
    name="Pool Preview",
    description="Quote a buy or sell against a pool without executing it",
)

pool_status_tag = Tag(
    name="Pool Status",
    description="Get the weights, reserves, spot price and phase of a pool",
)


def create_app(program: Optional[LbpProgram] = None) -> OpenAPI:
    """
    Builds the HTTP facade over 'program'. Engine errors become JSON bodies of the
    form {"error": name, "code": code, "message": text}.
    """
    program = program or LbpProgram()
    app = OpenAPI(__name__, info=info)
    app.config["LBP_PROGRAM"] = program

    @app.errorhandler(LbpError)
    def handle_lbp_error(e: LbpError):
        status = 404 if isinstance(e, PoolNotFound) else 400
        return jsonify({"error": e.name, "code": e.code, "message": str(e)}), status

    @app.post("/pool/preview", summary="Pool Preview", tags=[pool_preview_tag])
    def preview(body: PoolPreviewRequest):
        """
        Returns the quote the pool would give right now (or at 'now'), fees included.
        """
        key = PoolKey(body.asset_token, body.share_token, body.creator)
        kind = PreviewKind.from_str(body.kind.value)
        result = program.preview(key, kind, body.amount, body.now)
        return jsonify({"kind": str(kind), "amount": body.amount, "result": result})

    @app.get("/pool/status", summary="Pool Status", tags=[pool_status_tag])
    def status(query: PoolStatusRequest):
        """
        Return the current phase, weights, reserves and fee-free spot price of a pool.
        """
        key = PoolKey(query.asset_token, query.share_token, query.creator)
        pool = program.get_pool(key)
        now = query.now if query.now is not None else program.current_time()
        share_weight, asset_weight = WeightSchedule.weight_at(pool, now)
        return jsonify({
            "pool": str(key),
            "status": str(WeightSchedule.status_at(pool, now)),
            "share_weight": share_weight,
            "asset_weight": asset_weight,
            "asset_reserve": pool.asset_reserve,
            "share_reserve": pool.share_reserve,
            "total_purchased": pool.total_purchased,
            "spot_price": PricingEngine(pool, now).spot_price(),
        })

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
