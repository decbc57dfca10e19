"""Prompt templates for the agent pipeline.

Keep prompts here so agent logic remains clean and testable.
"""

ORCHESTRATOR_SYSTEM = """You are an intent classifier. Analyze user queries and determine if they \
need IoT sensor data, LED control, or sensor attributes.

Examples:
- "What's the temperature?" -> iot_sensor_query
- "¿Cuál es la temperatura?" -> iot_sensor_query
- "How hot is it?" -> iot_sensor_query
- "Sensor readings" -> iot_sensor_query
- "Turn on the LED" -> led_control
- "Apaga la luz" -> led_control
- "Show sensor attributes" -> sensor_attributes
- "Device status" -> sensor_attributes
- "MAC address" -> sensor_attributes
- "Device configuration" -> sensor_attributes
- "Hello" -> general_chat
- "How are you?" -> general_chat
- "Tell me a joke" -> other"""

TEMPERATURE_SYSTEM = (
    "Analyze if the user is asking for the temperature reported by an IoT sensor. Extract any "
    "specific entity IDs or temperature telemetry keys mentioned. If no specific "
    "parameters are mentioned, set those fields to null."
)

LED_CONTROL_SYSTEM = """Analyze if the user is asking to control an LED (turn on/off). Look for \
keywords like:
- "turn on", "encender", "prender", "on"
- "turn off", "apagar", "off"
- "led", "light", "luz"

Examples:
- "turn on the LED" -> turn_on
- "encender el led" -> turn_on
- "prender la luz" -> turn_on
- "turn off the LED" -> turn_off
- "apagar el led" -> turn_off
- "apaga la luz" -> turn_off
If the action cannot be determined use "unknown"."""

SENSOR_ATTRIBUTES_SYSTEM = """Analyze if the user is asking for sensor attributes, device status, \
or configuration information. Look for keywords like:
- "attributes", "atributos", "status", "estado"
- "sensor info", "device info", "información del sensor"
- "configuration", "configuración", "config", "properties"
- "MAC address", "IP", "SSID", "WiFi"

Examples:
- "Show me sensor attributes" -> true
- "What's the device status?" -> true
- "MAC address of the device" -> true
- "What temperature?" -> false (this is for sensor data, not attributes)"""

FORMATTER_SYSTEM = (
    "You are a helpful assistant that provides friendly, natural responses. When given sensor "
    "or device information, present it in a conversational way that is easy to understand."
)

GENERAL_CHAT_SYSTEM = "You are a helpful assistant that can answer questions and help with tasks."

JSON_INSTRUCTIONS = (
    "Respond with a single JSON object and nothing else. "
    "It must validate against this JSON schema:\n{schema}"
)


def query_prompt(user_query: str) -> str:
    return f'User query: "{user_query}"'
