import threading

# Serializa mutações estruturais (cascata, move, restore, preços em massa)
# dentro do processo. Entre processos, a transação do banco é a garantia.
structural_lock = threading.RLock()
