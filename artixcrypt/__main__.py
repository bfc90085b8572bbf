import artixcrypt

if __name__ == '__main__':
	artixcrypt.run_as_a_module()
