# /realty_intake/workflows/definitions.py

"""
Flow definitions for the three property questionnaires.

This module defines the flows as pure data (no logic). Each flow is an
ordered table of stages; every stage declares:
- prompt: the message sent when the stage is entered
- choices: fixed replies offered as buttons/list rows (empty for free text)
- field: the answer field its reply populates
- capture: how the reply is turned into a stored value
- next_stage: the successor (None only for the consent checkpoint)

The opening prompt of a flow is the prompt of its initial stage.
"""

from typing import Dict, List

from realty_intake.config import strings
from realty_intake.models.flow import (
    BinaryChoice,
    CaptureRule,
    Choice,
    FlowDefinition,
    FlowName,
    StageDefinition,
)

RESET_KEYWORD = "RESET"
MENU_KEYWORDS = frozenset({"MENU", "HOLA", "HI", "HELLO"})
SOURCE_TAG = "WhatsApp"

MAIN_MENU_CHOICES: List[Choice] = [
    Choice(id="BUY", title="Comprar"),
    Choice(id="SELL", title="Vender"),
    Choice(id="RENT", title="Rentar"),
]

# --- Shared choice sets and capture rules ---

TYPE_CASA = Choice(id="TYPE_CASA", title="Casa")
TYPE_APTO = Choice(id="TYPE_APTO", title="Apartamento")
TYPE_TERRENO = Choice(id="TYPE_TERRENO", title="Terreno")
TYPE_LOCAL = Choice(id="TYPE_LOCAL", title="Local")

CONSENT_CHOICES = [
    Choice(id="CONSENT_YES", title="Sí, autorizo"),
    Choice(id="CONSENT_NO", title="No"),
]

CONSENT_RULE = BinaryChoice(
    positive_tokens=["CONSENT_YES", "SI", "SÍ"],
    positive_value="Sí",
    negative_value="No",
    text_prefix="s",
)

PAYMENT_RULE = BinaryChoice(
    positive_tokens=["PAY_CREDITO"],
    positive_value="Crédito",
    negative_value="Contado",
    text_contains="cred",
)

PETS_RULE = BinaryChoice(
    positive_tokens=["PETS_YES"],
    positive_value="Sí",
    negative_value="No",
    text_prefix="s",
)

EMAIL_OPT_OUT = "no"


def _stages(*stages: StageDefinition) -> Dict[str, StageDefinition]:
    return {stage.name: stage for stage in stages}


def _contact_stages(consent_prompt: str) -> List[StageDefinition]:
    return [
        StageDefinition(name="ASK_CONTACT_NAME", prompt=strings.ASK_CONTACT_NAME,
                        field="Nombre", next_stage="ASK_EMAIL"),
        StageDefinition(name="ASK_EMAIL", prompt=strings.ASK_EMAIL, field="Email",
                        capture=CaptureRule.OPTIONAL, opt_out=EMAIL_OPT_OUT, next_stage="ASK_CONSENT"),
        StageDefinition(name="ASK_CONSENT", prompt=consent_prompt, choices=CONSENT_CHOICES,
                        field="Consentimiento", capture=CaptureRule.CONSENT, binary=CONSENT_RULE),
    ]


SELL_FLOW = FlowDefinition(
    name=FlowName.SELL,
    label="Vender",
    keywords=["SELL", "VENDER"],
    initial_stage="ASK_LOCATION",
    stages=_stages(
        StageDefinition(name="ASK_LOCATION", prompt=strings.SELL_ASK_LOCATION,
                        field="Ubicacion", next_stage="ASK_TYPE"),
        StageDefinition(name="ASK_TYPE", prompt=strings.SELL_ASK_TYPE,
                        choices=[TYPE_CASA, TYPE_APTO, TYPE_TERRENO, TYPE_LOCAL],
                        field="TipoPropiedad", next_stage="ASK_METERS"),
        StageDefinition(name="ASK_METERS", prompt=strings.SELL_ASK_METERS,
                        field="Metros", next_stage="ASK_ROOMS"),
        StageDefinition(name="ASK_ROOMS", prompt=strings.SELL_ASK_ROOMS,
                        field="Habitabilidad", next_stage="ASK_PARKING"),
        StageDefinition(name="ASK_PARKING", prompt=strings.SELL_ASK_PARKING,
                        field="Estacionamientos", next_stage="ASK_PRICE"),
        StageDefinition(name="ASK_PRICE", prompt=strings.SELL_ASK_PRICE,
                        field="PrecioOPresupuesto", next_stage="ASK_CONTACT_NAME"),
        *_contact_stages(strings.SELL_ASK_CONSENT),
    ),
    lead_saved=strings.SELL_LEAD_SAVED,
    lead_failed=strings.SELL_LEAD_FAILED,
    consent_declined=strings.SELL_CONSENT_DECLINED,
)

BUY_FLOW = FlowDefinition(
    name=FlowName.BUY,
    label="Comprar",
    keywords=["BUY", "COMPRAR"],
    initial_stage="ASK_LOCATION",
    stages=_stages(
        StageDefinition(name="ASK_LOCATION", prompt=strings.BUY_ASK_LOCATION,
                        field="Ubicacion", next_stage="ASK_TYPE"),
        StageDefinition(name="ASK_TYPE", prompt=strings.BUY_ASK_TYPE,
                        choices=[TYPE_CASA, TYPE_APTO, TYPE_TERRENO, TYPE_LOCAL],
                        field="TipoPropiedad", next_stage="ASK_BUDGET"),
        StageDefinition(name="ASK_BUDGET", prompt=strings.BUY_ASK_BUDGET,
                        field="PrecioOPresupuesto", next_stage="ASK_ROOMS"),
        StageDefinition(name="ASK_ROOMS", prompt=strings.BUY_ASK_ROOMS,
                        field="Habitabilidad", next_stage="ASK_PAYMENT"),
        StageDefinition(name="ASK_PAYMENT", prompt=strings.BUY_ASK_PAYMENT,
                        choices=[Choice(id="PAY_CREDITO", title="Crédito"),
                                 Choice(id="PAY_CONTADO", title="Contado")],
                        field="FormaPago", capture=CaptureRule.BINARY, binary=PAYMENT_RULE,
                        next_stage="ASK_TIMING"),
        StageDefinition(name="ASK_TIMING", prompt=strings.BUY_ASK_TIMING,
                        field="TiempoCompra", next_stage="ASK_CONTACT_NAME"),
        *_contact_stages(strings.BUY_ASK_CONSENT),
    ),
    lead_saved=strings.BUY_LEAD_SAVED,
    lead_failed=strings.LEAD_FAILED,
    consent_declined=strings.BUY_CONSENT_DECLINED,
)

RENT_FLOW = FlowDefinition(
    name=FlowName.RENT,
    label="Rentar",
    keywords=["RENT", "RENTAR"],
    initial_stage="ASK_LOCATION",
    stages=_stages(
        StageDefinition(name="ASK_LOCATION", prompt=strings.RENT_ASK_LOCATION,
                        field="Ubicacion", next_stage="ASK_TYPE"),
        StageDefinition(name="ASK_TYPE", prompt=strings.RENT_ASK_TYPE,
                        choices=[TYPE_CASA, TYPE_APTO, TYPE_LOCAL],
                        field="TipoPropiedad", next_stage="ASK_BUDGET"),
        StageDefinition(name="ASK_BUDGET", prompt=strings.RENT_ASK_BUDGET,
                        field="PrecioOPresupuesto", next_stage="ASK_ROOMS"),
        StageDefinition(name="ASK_ROOMS", prompt=strings.RENT_ASK_ROOMS,
                        field="Habitabilidad", next_stage="ASK_PETS"),
        StageDefinition(name="ASK_PETS", prompt=strings.RENT_ASK_PETS,
                        choices=[Choice(id="PETS_YES", title="Sí"),
                                 Choice(id="PETS_NO", title="No")],
                        field="Mascotas", capture=CaptureRule.BINARY, binary=PETS_RULE,
                        next_stage="ASK_STAY"),
        StageDefinition(name="ASK_STAY", prompt=strings.RENT_ASK_STAY,
                        field="EstanciaMeses", next_stage="ASK_CONTACT_NAME"),
        *_contact_stages(strings.RENT_ASK_CONSENT),
    ),
    lead_saved=strings.RENT_LEAD_SAVED,
    lead_failed=strings.LEAD_FAILED,
    consent_declined=strings.RENT_CONSENT_DECLINED,
)

FLOWS: Dict[FlowName, FlowDefinition] = {
    FlowName.BUY: BUY_FLOW,
    FlowName.SELL: SELL_FLOW,
    FlowName.RENT: RENT_FLOW,
}
