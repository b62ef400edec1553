"""
Inbound call setup: ElevenLabs signed session URL and Twilio TwiML
"""
