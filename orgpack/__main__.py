from orgpack.cli import main


main()
