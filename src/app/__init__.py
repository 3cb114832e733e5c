"""App: coração do serviço: coordenação do data exchange e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- coordinators/: fluxo end-to-end (decrypt → negócio → encrypt)
- infra/: criptografia (RSA-OAEP, AES-GCM, KeyStore)
- protocols/: contratos/interfaces
- observability/: exchange_id em contexto e métricas via logs

Padrão: app executa; api adapta.
"""
