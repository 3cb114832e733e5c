"""API: camada de borda HTTP.

Responsabilidades:
- Receber requests de data exchange de WhatsApp Flows
- Validar o formato do corpo
- Traduzir o resultado do coordinator em status HTTP

NÃO PODE conter: criptografia, regras de negócio de Flows.
"""
