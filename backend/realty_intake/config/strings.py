# /realty_intake/config/strings.py

# This file contains all user-facing strings, making them easy to manage
# and update without changing application logic.

# Main menu
MAIN_MENU_PROMPT = "¡Hola! Soy tu asistente inmobiliario. ¿Qué deseas hacer hoy?"
RESET_ACK = "Conversación reiniciada."

# Opening prompts
SELL_ASK_LOCATION = "¡Excelente! 📍 ¿Dónde está ubicada la propiedad (ciudad/barrio)?"
BUY_ASK_LOCATION = "Perfecto 🏠 ¿En qué zona o ciudad te interesa comprar?"
RENT_ASK_LOCATION = "Genial 🗺️ ¿En qué zona deseas rentar?"

# Property type
SELL_ASK_TYPE = "¿Qué tipo de propiedad es?"
BUY_ASK_TYPE = "¿Qué tipo de propiedad buscas?"
RENT_ASK_TYPE = "¿Qué tipo de propiedad deseas rentar?"

# SELL
SELL_ASK_METERS = '¿Cuántos m² construidos y de terreno? (ej: "120 construidos / 300 terreno")'
SELL_ASK_ROOMS = 'Número de recámaras y baños (ej: "3 recámaras / 2 baños").'
SELL_ASK_PARKING = "¿Cuántos estacionamientos?"
SELL_ASK_PRICE = "¿Precio de venta? (moneda y monto)"

# BUY
BUY_ASK_BUDGET = "¿Cuál es tu presupuesto máximo? (moneda y monto)"
BUY_ASK_ROOMS = "¿Cuántas recámaras y baños necesitas?"
BUY_ASK_PAYMENT = "¿Piensas comprar con crédito o contado?"
BUY_ASK_TIMING = "¿En cuánto tiempo te gustaría comprar? (ej: 1-3 meses)"

# RENT
RENT_ASK_BUDGET = "¿Presupuesto mensual (moneda y monto)?"
RENT_ASK_ROOMS = "¿Recámaras y baños que necesitas?"
RENT_ASK_PETS = "¿Aceptan/traes mascotas?"
RENT_ASK_STAY = "¿Por cuántos meses planeas rentar?"

# Contact details (shared)
ASK_CONTACT_NAME = "Tu nombre completo, por favor."
ASK_EMAIL = 'Tu correo electrónico (opcional, puedes escribir "no").'

# Consent
SELL_ASK_CONSENT = "¿Autorizas que compartamos tus datos con nuestro asesor para contacto?"
BUY_ASK_CONSENT = "¿Autorizas que compartamos tus datos con nuestro asesor para contactarte?"
RENT_ASK_CONSENT = SELL_ASK_CONSENT

# Outcomes. {lead_id} and {detail} are filled in by the engine.
SELL_LEAD_SAVED = "¡Listo! Registramos tu propiedad. ID: {lead_id}. Un asesor te contactará pronto."
BUY_LEAD_SAVED = "¡Gracias! Registramos tu búsqueda. ID: {lead_id}. Un asesor te contactará."
RENT_LEAD_SAVED = "¡Perfecto! Registramos tu solicitud de renta. ID: {lead_id}. Un asesor te contactará."

SELL_LEAD_FAILED = (
    "Guardamos tu información localmente pero hubo un problema con el CRM. "
    "Un asesor dará seguimiento. Detalle: {detail}..."
)
LEAD_FAILED = "Guardamos tu info localmente pero falló el CRM. Seguimiento manual. Detalle: {detail}..."

SELL_CONSENT_DECLINED = "Entendido. No compartiremos tus datos. Si cambias de opinión, escribe MENU."
BUY_CONSENT_DECLINED = "OK, no compartiremos tus datos. Si quieres volver al menú, escribe MENU."
RENT_CONSENT_DECLINED = "Entendido. No compartiremos tus datos. Para menú, escribe MENU."

# Record store
AIRTABLE_NOT_CONFIGURED = "Airtable no configurado"

# Public
ROOT_ACK = "Bot Inmobiliaria OK"
