"""命令列介面"""
