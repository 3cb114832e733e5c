"""Constantes criptográficas para WhatsApp Flows."""

AES_KEY_SIZE = 16  # 128 bits, único tamanho aceito para a chave de sessão
IV_SIZE = 12  # 96 bits (GCM)
TAG_SIZE = 16  # 128 bits

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

# Mensagem fixa usada no self-test de par de chaves
SELF_TEST_MESSAGE = "Hello, WhatsApp Flow!"
